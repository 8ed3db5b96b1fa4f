from __future__ import annotations

from dataclasses import dataclass, field

from floorops.domain.common.errors import NotFoundError, ValidationError
from floorops.domain.common.ids import ComboId, MenuItemId
from floorops.domain.common.money import Money


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    name: str
    price: Money
    is_available: bool
    description: str | None = None
    category: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")

    def ensure_orderable(self) -> None:
        if not self.is_available:
            raise MenuItemUnavailableError(
                f"menu item {self.item_id} is unavailable",
                details={"menu_item_id": str(self.item_id)},
            )


@dataclass(frozen=True)
class ComboComponent:
    menu_item_id: MenuItemId
    quantity: int

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("component quantity must be >= 1")


@dataclass(frozen=True)
class Combo:
    combo_id: ComboId
    name: str
    price: Money
    is_active: bool
    components: list[ComboComponent] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")

    def ensure_orderable(self) -> None:
        if not self.is_active:
            raise MenuItemUnavailableError(
                f"combo {self.combo_id} is inactive",
                details={"combo_id": str(self.combo_id)},
            )


class MenuItemUnavailableError(ValidationError):
    code = "MENU_ITEM_UNAVAILABLE"


class CatalogEntryNotFoundError(NotFoundError):
    code = "CATALOG_ENTRY_NOT_FOUND"
