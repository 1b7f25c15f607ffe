"""Row storage for Editverse.

Provides:
- Storage protocols injected into the services
- In-memory store (tests, local runs)
- Cassandra store (production)
"""

from editverse.storage.base import ApplicationStore, ContentStore, ProgressStore
from editverse.storage.factory import create_store
from editverse.storage.memory import InMemoryStore


__all__ = [
    "ApplicationStore",
    "ContentStore",
    "InMemoryStore",
    "ProgressStore",
    "create_store",
]
