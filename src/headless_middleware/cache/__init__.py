"""Client handle registries.

All registries implement the ClientRegistry protocol defined in base.py.

Available Registries:
    - ClientCache: In-memory registry with asyncio concurrency control
"""

from headless_middleware.cache.base import ClientRegistry
from headless_middleware.cache.memory import ClientCache

__all__ = [
    "ClientRegistry",
    "ClientCache",
]
