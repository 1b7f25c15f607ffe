"""Cassandra database connection and management.

Provides:
- Cluster connection and session lifecycle
- Keyspace and table initialization
"""

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster, Session
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy

from editverse.applications.models import APPLICATIONS_TABLES_CQL
from editverse.config.settings import Settings, get_settings
from editverse.courses.models import COURSES_TABLES_CQL
from editverse.progress.models import PROGRESS_TABLES_CQL


logger = structlog.get_logger(__name__)


class CassandraConnection:
    """Cassandra connection manager.

    Manages cluster connection and session lifecycle.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._cluster: Cluster | None = None
        self._session: Session | None = None

    def connect(self) -> Session:
        """Establish connection to Cassandra cluster.

        Returns:
            Active Cassandra session

        Raises:
            ConnectionError: If connection fails
        """
        if self._session is not None:
            return self._session

        settings = self.settings

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        self._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            self._session = self._cluster.connect()
            logger.info(
                "cassandra_connected",
                hosts=settings.cassandra_hosts,
                port=settings.cassandra_port,
            )
        except Exception as e:
            logger.error("cassandra_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        return self._session

    def disconnect(self) -> None:
        """Close connection to Cassandra."""
        if self._session is not None:
            self._session.shutdown()
            self._session = None
            logger.info("cassandra_session_closed")

        if self._cluster is not None:
            self._cluster.shutdown()
            self._cluster = None
            logger.info("cassandra_cluster_closed")

    @property
    def is_connected(self) -> bool:
        """Check if connection is active."""
        return self._session is not None and not self._session.is_shutdown


def init_keyspace(session: Session, keyspace: str, settings: Settings) -> None:
    """Create keyspace if not exists.

    Args:
        session: Active Cassandra session
        keyspace: Keyspace name
        settings: Settings deciding the replication strategy
    """
    if settings.is_production:
        replication = """
            'class': 'NetworkTopologyStrategy',
            'datacenter1': 3
        """
    else:
        replication = """
            'class': 'SimpleStrategy',
            'replication_factor': 1
        """

    cql = f"""
        CREATE KEYSPACE IF NOT EXISTS {keyspace}
        WITH replication = {{{replication}}}
        AND durable_writes = true
    """

    session.execute(cql)
    logger.info("keyspace_created", keyspace=keyspace)


def init_tables(session: Session, keyspace: str) -> None:
    """Create course content, progress and application tables.

    Args:
        session: Active Cassandra session
        keyspace: Keyspace name
    """
    for cql_template in (
        *COURSES_TABLES_CQL,
        *PROGRESS_TABLES_CQL,
        *APPLICATIONS_TABLES_CQL,
    ):
        session.execute(cql_template.format(keyspace=keyspace))

    logger.info("tables_created", keyspace=keyspace)


def init_cassandra(connection: CassandraConnection) -> Session:
    """Connect and create keyspace and tables if they don't exist.

    Returns:
        Configured Cassandra session
    """
    keyspace = connection.settings.cassandra_keyspace
    session = connection.connect()

    init_keyspace(session, keyspace, connection.settings)
    session.set_keyspace(keyspace)
    init_tables(session, keyspace)

    logger.info("cassandra_initialized", keyspace=keyspace)
    return session
