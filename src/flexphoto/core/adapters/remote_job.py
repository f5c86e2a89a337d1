"""Remote-job composite adapter.

Sends the compiled Polaroid prompt to the job-based provider and downloads
the finished image.  The photos are passed along as references for logging,
but the job input itself is text only.
"""

import requests

from ..composite_adapters import CompositeAdapterBase, adapter_registry
from ..config import FlexPhotoConfig
from ..replicate_client import ReplicateJobsClient
from ..storage import UploadedImage


class RemoteJobAdapter(CompositeAdapterBase):
    """Compose via a text-only job on the alternate provider."""

    name = "remote-job"
    description = "Text-only generation job on the alternate provider, result downloaded by URL"

    def __init__(self, config: FlexPhotoConfig, session: requests.Session | None = None) -> None:
        super().__init__(config, session)
        self.client = ReplicateJobsClient(config, self.session)

    def compose(self, images: list[UploadedImage], base_prompt: str) -> bytes | str:
        return self.client.run(base_prompt, image_refs=[image.public_path for image in images])


adapter_registry.register(RemoteJobAdapter)
