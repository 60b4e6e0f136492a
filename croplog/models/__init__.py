"""ORM model registry: importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from croplog.models import PlantingRecord, QualityLog, ...
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from croplog.models.base import (
    Base,
    SyncedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

# ── Enums ───────────────────────────────────────────────────────────────────
from croplog.models.enums import LocationEnum, UserRoleEnum

# ── Quality logs ────────────────────────────────────────────────────────────
from croplog.models.quality import QualityLog

# ── Workspace settings ──────────────────────────────────────────────────────
from croplog.models.settings import WORKSPACE_SETTINGS_ID, WorkspaceSettings

# ── Sheet-derived models ────────────────────────────────────────────────────
from croplog.models.sheets import (
    PlantingRecord,
    QualifierDefinition,
    SheetSnapshot,
    UniversalQualifier,
)

# ── Users ───────────────────────────────────────────────────────────────────
from croplog.models.user import User

__all__ = [
    # Base & mixins
    "Base",
    # Enums
    "LocationEnum",
    # Sheet-derived
    "PlantingRecord",
    "QualifierDefinition",
    # Quality logs
    "QualityLog",
    "SheetSnapshot",
    "SyncedMixin",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "UniversalQualifier",
    # Auth
    "User",
    "UserRoleEnum",
    "WORKSPACE_SETTINGS_ID",
    # Settings
    "WorkspaceSettings",
]
