"""Composite adapter implementations.

Importing this package registers every adapter with
:data:`flexphoto.core.composite_adapters.adapter_registry`.
"""

from .describe_then_generate import DescribeThenGenerateAdapter
from .remote_job import RemoteJobAdapter

__all__ = ["DescribeThenGenerateAdapter", "RemoteJobAdapter"]
