"""Build the configured store."""

import structlog

from editverse.config.settings import Settings, get_settings
from editverse.core.database.cassandra import CassandraConnection, init_cassandra
from editverse.storage.cassandra import CassandraStore
from editverse.storage.memory import InMemoryStore


logger = structlog.get_logger(__name__)


def create_store(settings: Settings | None = None) -> InMemoryStore | CassandraStore:
    """Create the store selected by ``settings.storage_backend``.

    The returned object implements ProgressStore, ContentStore and
    ApplicationStore and is meant to be passed to each service.
    """
    settings = settings or get_settings()

    if settings.storage_backend == "cassandra":
        session = init_cassandra(CassandraConnection(settings))
        store: InMemoryStore | CassandraStore = CassandraStore(
            session, settings.cassandra_keyspace
        )
    else:
        store = InMemoryStore()

    logger.info("store_created", backend=settings.storage_backend)
    return store
