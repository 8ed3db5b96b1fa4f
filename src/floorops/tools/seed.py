"""Load demo tables, menu, a combo, a promotion and an active tax setting.

Idempotent: re-running upserts the same rows.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import inspect, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from floorops.infrastructure.db.models.billing import PromotionModel, TaxSettingModel
from floorops.infrastructure.db.models.menu import (
    ComboComponentModel,
    ComboModel,
    MenuItemModel,
)
from floorops.infrastructure.db.models.table import TableModel
from floorops.infrastructure.db.session import get_engine
from floorops.infrastructure.settings import default_currency

REQUIRED_TABLES = {"tables", "menu_items", "combos", "combo_components", "promotions"}

TABLES = [
    {"id": "tbl_001", "number": "T1", "min_capacity": 1, "capacity": 2},
    {"id": "tbl_002", "number": "T2", "min_capacity": 2, "capacity": 4},
    {"id": "tbl_003", "number": "T3", "min_capacity": 2, "capacity": 4},
    {"id": "tbl_004", "number": "T4", "min_capacity": 4, "capacity": 8},
]

MENU_ITEMS = [
    {
        "id": "itm_001",
        "name": "Margherita Pizza",
        "description": "Tomato, mozzarella, basil",
        "category": "mains",
        "price_cents": 1450,
        "is_available": True,
    },
    {
        "id": "itm_002",
        "name": "Chicken Alfredo",
        "description": "Fettuccine, creamy parmesan sauce",
        "category": "mains",
        "price_cents": 1690,
        "is_available": True,
    },
    {
        "id": "itm_003",
        "name": "Caesar Salad",
        "description": "Romaine, croutons, parmesan",
        "category": "starters",
        "price_cents": 990,
        "is_available": True,
    },
    {
        "id": "itm_004",
        "name": "Tiramisu",
        "description": "Espresso-soaked ladyfingers",
        "category": "desserts",
        "price_cents": 850,
        "is_available": False,
    },
    {
        "id": "itm_005",
        "name": "Lemonade",
        "description": None,
        "category": "drinks",
        "price_cents": 400,
        "is_available": True,
    },
]

COMBO = {"id": "cmb_001", "name": "Pizza Lunch", "price_cents": 1700, "is_active": True}
COMBO_COMPONENTS = [("itm_001", 1), ("itm_005", 1)]


def _upsert(session: Session, model, values: dict, index_elements: list) -> None:
    editable = {key: value for key, value in values.items() if key != "id"}
    session.execute(
        insert(model)
        .values(**values)
        .on_conflict_do_update(index_elements=index_elements, set_=editable)
    )


def main() -> None:
    engine = get_engine(timeout_seconds=2.0)
    inspector = inspect(engine)
    if not REQUIRED_TABLES.issubset(set(inspector.get_table_names(schema="public"))):
        print("no schema yet")
        return

    currency = default_currency()
    with Session(engine) as session:
        for table in TABLES:
            _upsert(
                session,
                TableModel,
                {**table, "status": "available", "is_active": True},
                [TableModel.id],
            )

        for item in MENU_ITEMS:
            _upsert(session, MenuItemModel, {**item, "currency": currency}, [MenuItemModel.id])

        _upsert(session, ComboModel, {**COMBO, "currency": currency}, [ComboModel.id])
        for menu_item_id, quantity in COMBO_COMPONENTS:
            _upsert(
                session,
                ComboComponentModel,
                {"combo_id": COMBO["id"], "menu_item_id": menu_item_id, "quantity": quantity},
                [ComboComponentModel.combo_id, ComboComponentModel.menu_item_id],
            )

        _upsert(
            session,
            PromotionModel,
            {
                "id": "prm_001",
                "code": "WELCOME10",
                "name": "Welcome 10% off",
                "discount_type": "percentage",
                "discount_value": Decimal("10"),
                "minimum_order_cents": 2000,
                "currency": currency,
                "starts_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
                "ends_at": datetime(2027, 12, 31, 23, 59, tzinfo=timezone.utc),
                "is_active": True,
                "usage_limit": 100,
            },
            [PromotionModel.id],
        )

        session.execute(
            update(TaxSettingModel)
            .where(TaxSettingModel.id != "tax_001")
            .values(is_active=False)
        )
        _upsert(
            session,
            TaxSettingModel,
            {
                "id": "tax_001",
                "name": "Sales tax",
                "tax_type": "manual",
                "rate": Decimal("10.00"),
                "is_active": True,
            },
            [TaxSettingModel.id],
        )

        session.commit()
        print("seed complete")


if __name__ == "__main__":
    main()
