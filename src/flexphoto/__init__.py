"""Flex Photo - AI photo enhancement and two-person Polaroid composites."""

__version__ = "0.1.0"

from flexphoto.core import FlexPhotoConfig, ProviderError, adapter_registry

__all__ = [
    "FlexPhotoConfig",
    "ProviderError",
    "adapter_registry",
]
