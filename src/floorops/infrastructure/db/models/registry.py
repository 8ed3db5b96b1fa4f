"""Imports every model module so ``Base.metadata`` describes the whole schema."""

from __future__ import annotations

from floorops.infrastructure.db.models import (  # noqa: F401
    billing,
    menu,
    order,
    reservation,
    table,
)
from floorops.infrastructure.db.models.menu import Base

metadata = Base.metadata
