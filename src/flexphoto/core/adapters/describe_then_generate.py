"""Describe-then-generate composite adapter.

Two strictly sequential provider calls:

1. The vision model describes both people (:class:`SubjectDescription`).
2. The image model draws the Polaroid from the compiled prompt with that
   description appended verbatim.

Step 2 takes the typed result of step 1 as its input, so a failure in step 1
(which raises :class:`ProviderError`) leaves nothing for step 2 to run on.
"""

import logging

import requests

from ..composite_adapters import CompositeAdapterBase, adapter_registry
from ..config import FlexPhotoConfig
from ..openai_client import OpenAIImagesClient, SubjectDescription
from ..prompt_builder import DESCRIBE_TWO_PEOPLE_INSTRUCTION, compose_generation_prompt
from ..storage import UploadedImage

logger = logging.getLogger(__name__)


class DescribeThenGenerateAdapter(CompositeAdapterBase):
    """Compose two people via a vision description and text-to-image generation."""

    name = "describe-then-generate"
    description = "Vision description of both people, then text-to-image generation"

    def __init__(self, config: FlexPhotoConfig, session: requests.Session | None = None) -> None:
        super().__init__(config, session)
        self.client = OpenAIImagesClient(config, self.session)

    def describe(self, images: list[UploadedImage]) -> SubjectDescription:
        description = self.client.describe_subjects(images, DESCRIBE_TWO_PEOPLE_INSTRUCTION)
        if not description.text.strip():
            logger.warning("Subject description is empty; generating from the prompt alone")
        return description

    def generate(self, base_prompt: str, description: SubjectDescription) -> str:
        return self.client.generate_image(compose_generation_prompt(base_prompt, description))

    def compose(self, images: list[UploadedImage], base_prompt: str) -> str:
        description = self.describe(images)
        return self.generate(base_prompt, description)


adapter_registry.register(DescribeThenGenerateAdapter)
