"""Shared model utilities used across all models."""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, Integer

# 64-bit identities on PostgreSQL; SQLite only auto-increments INTEGER primary keys.
IdentityType = BigInteger().with_variant(Integer(), "sqlite")


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
