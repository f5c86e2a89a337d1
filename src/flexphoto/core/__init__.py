"""Core functionality for Flex Photo.

- **FlexPhotoConfig**: Configuration management using Pydantic Settings
- **storage**: Upload and output persistence, retention sweep
- **validation**: Pure checks for uploads and prompts
- **prompt_builder**: Fixed prompt templates per mode
- **OpenAIImagesClient / ReplicateJobsClient**: External provider calls
- **adapter_registry**: Backends for the two-person composite

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration, FLEXPHOTO_ prefix
   - Storage directories created on construction

2. **Provider Layer** (provider.py, openai_client.py, replicate_client.py):
   - One request helper mapping every failure to ProviderError
   - No retries; generation calls carry a long timeout

3. **Composite Adapter Layer** (composite_adapters.py, adapters/):
   - Unified interface for describe-then-generate and remote-job backends

4. **Storage Layer** (storage.py):
   - Collision-free file names, atomic writes, optional retention sweep
"""

# Import adapters to ensure they're registered
from flexphoto.core.adapters import DescribeThenGenerateAdapter, RemoteJobAdapter  # noqa: F401
from flexphoto.core.composite_adapters import CompositeAdapterBase, adapter_registry
from flexphoto.core.config import FlexPhotoConfig
from flexphoto.core.provider import ProviderError

__all__ = [
    "CompositeAdapterBase",
    "adapter_registry",
    "FlexPhotoConfig",
    "ProviderError",
]
