"""PostgreSQL-backed enum types for all ORM models.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM.
These are separate from the Pydantic StrEnums in croplog/schemas;
schema enums shape API payloads, ORM enums type database columns.
"""

from enum import StrEnum

# ── Planting enums ──────────────────────────────────────────────────────────


class LocationEnum(StrEnum):
    """Growing-area classification derived from a field sheet's name."""

    high_tunnel = "high_tunnel"
    greenhouse = "greenhouse"
    open_field = "open_field"


# ── Auth enums ──────────────────────────────────────────────────────────────


class UserRoleEnum(StrEnum):
    """User authorization roles."""

    admin = "admin"
    member = "member"
