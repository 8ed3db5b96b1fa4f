from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from floorops.application.ports.repositories import CatalogRepository
from floorops.domain.common.ids import ComboId, MenuItemId
from floorops.domain.common.money import Money
from floorops.domain.menu.entities import Combo, ComboComponent, MenuItem
from floorops.infrastructure.db.models.menu import ComboModel, MenuItemModel


class SqlAlchemyCatalogRepository(CatalogRepository):
    """Read-only view of menu items and combos."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_menu_item(self, menu_item_id: MenuItemId) -> MenuItem | None:
        model = self._session.get(MenuItemModel, str(menu_item_id))
        return self._item_to_domain(model) if model is not None else None

    def get_menu_items(self, menu_item_ids: Iterable[MenuItemId]) -> dict[str, MenuItem]:
        ids = [str(menu_item_id) for menu_item_id in menu_item_ids]
        if not ids:
            return {}
        statement = select(MenuItemModel).where(MenuItemModel.id.in_(ids))
        return {
            model.id: self._item_to_domain(model)
            for model in self._session.execute(statement).scalars()
        }

    def get_combo(self, combo_id: ComboId) -> Combo | None:
        statement = (
            select(ComboModel)
            .options(selectinload(ComboModel.components))
            .where(ComboModel.id == str(combo_id))
        )
        model = self._session.execute(statement).scalar_one_or_none()
        if model is None:
            return None
        return Combo(
            combo_id=ComboId(model.id),
            name=model.name,
            price=Money(amount_cents=model.price_cents, currency=model.currency),
            is_active=model.is_active,
            components=[
                ComboComponent(
                    menu_item_id=MenuItemId(component.menu_item_id),
                    quantity=component.quantity,
                )
                for component in model.components
            ],
        )

    def _item_to_domain(self, model: MenuItemModel) -> MenuItem:
        return MenuItem(
            item_id=MenuItemId(model.id),
            name=model.name,
            price=Money(amount_cents=model.price_cents, currency=model.currency),
            is_available=model.is_available,
            description=model.description,
            category=model.category,
        )
