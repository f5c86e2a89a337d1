"""Base class and registry for two-person composite backends.

``POST /api/create`` turns two photos and a scene description into a single
vintage Polaroid.  How that happens depends on the provider, so each way of
doing it is an adapter with a common interface:

- **describe-then-generate**: a vision model describes both people, then a
  text-to-image model draws them from the Polaroid prompt plus that
  description (:mod:`flexphoto.core.adapters.describe_then_generate`).
- **remote-job**: a text-only job is submitted to a job-based provider and the
  result downloaded (:mod:`flexphoto.core.adapters.remote_job`).

The backend is chosen with ``FLEXPHOTO_CREATE_BACKEND``.

Usage Example
-------------
::

    >>> from flexphoto.core.composite_adapters import adapter_registry
    >>> adapter = adapter_registry.instantiate("describe-then-generate", config)
    >>> generated = adapter.compose_and_save(images, "Playing chess in a park")
    >>> generated.public_path
    '/outputs/polaroid-1718000000000-....png'
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import requests

from .config import FlexPhotoConfig
from .prompt_builder import build_polaroid_prompt
from .storage import GeneratedImage, UploadedImage, save_generated_image

logger = logging.getLogger(__name__)

POLAROID_MODE = "polaroid"


class CompositeAdapterBase(ABC):
    """Abstract base class for composite backends.

    Attributes
    ----------
    name : str
        Registry key, also accepted by ``FLEXPHOTO_CREATE_BACKEND``
    description : str
        Brief description of how the backend works
    config : FlexPhotoConfig
        Application configuration
    session : requests.Session
        HTTP session shared with the provider clients
    """

    name: str = "Base Composite Adapter"
    description: str = "Base class for composite adapters"

    def __init__(self, config: FlexPhotoConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or requests.Session()
        logger.info(f"Initialized {self.name} composite adapter")

    @abstractmethod
    def compose(self, images: list[UploadedImage], base_prompt: str) -> bytes | str:
        """Produce the composite image.

        Args:
            images: The two stored photos.
            base_prompt: Compiled Polaroid prompt.

        Returns:
            Raw image bytes or base64 text, as returned by the provider.

        Raises
        ------
        ProviderError
            If any provider call fails
        """
        pass

    def compose_and_save(self, images: list[UploadedImage], scene: str) -> GeneratedImage:
        """Build the prompt, run :meth:`compose` and store the result.

        Args:
            images: The two stored photos.
            scene: What the two people are doing.

        Returns:
            The stored output image.
        """
        base_prompt = build_polaroid_prompt(scene)
        payload = self.compose(images, base_prompt)
        return save_generated_image(payload, POLAROID_MODE, self.config.outputs_dir)

    def get_adapter_info(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description}


class AdapterRegistry:
    """Registry of available composite adapter classes."""

    def __init__(self) -> None:
        self._adapters: dict[str, type[CompositeAdapterBase]] = {}

    def register(self, adapter_class: type[CompositeAdapterBase]) -> None:
        """Register a composite adapter class under its ``name``."""
        adapter_name = adapter_class.name

        if adapter_name in self._adapters:
            logger.warning(f"Composite adapter '{adapter_name}' is already registered, overwriting")

        self._adapters[adapter_name] = adapter_class
        logger.debug(f"Registered composite adapter: {adapter_name}")

    def instantiate(
        self,
        adapter_name: str,
        config: FlexPhotoConfig,
        session: requests.Session | None = None,
    ) -> CompositeAdapterBase:
        """Create an instance of a registered adapter.

        Raises
        ------
        KeyError
            If adapter_name is not registered
        """
        if adapter_name not in self._adapters:
            available = ", ".join(self.list_available())
            raise KeyError(
                f"Composite adapter '{adapter_name}' not found. Available adapters: {available}"
            )

        return self._adapters[adapter_name](config=config, session=session)

    def list_available(self) -> list[str]:
        return list(self._adapters.keys())


# Global adapter registry; adapters register themselves on import.
adapter_registry = AdapterRegistry()
