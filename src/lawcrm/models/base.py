"""Declarative base and shared column types."""

from sqlalchemy import JSON, BigInteger, Integer, TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase


class JSONBType(TypeDecorator):
    """JSON type that uses JSONB on PostgreSQL and JSON elsewhere (for SQLite tests)."""

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


# bigint keys on the hosted database, plain INTEGER rowids on SQLite
BigIntId = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    """Base class for all mapped tables.

    The tables are owned by the hosted database; each model declares its own
    primary key because the two lead schemas and the lookup tables do not
    share a key type.
    """
