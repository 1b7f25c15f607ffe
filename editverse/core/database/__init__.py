"""Database connection module for Editverse."""

from editverse.core.database.cassandra import (
    CassandraConnection,
    init_cassandra,
    init_keyspace,
    init_tables,
)


__all__ = [
    "CassandraConnection",
    "init_cassandra",
    "init_keyspace",
    "init_tables",
]
