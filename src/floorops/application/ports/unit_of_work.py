from __future__ import annotations

from types import TracebackType
from typing import Callable, Protocol

from floorops.application.ports.repositories import (
    BillRepository,
    CatalogRepository,
    OrderRepository,
    PaymentRepository,
    PromotionRepository,
    ReservationRepository,
    TableRepository,
    TaxSettingRepository,
)


class UnitOfWork(Protocol):
    """One transaction. Leaving the block without ``commit()`` rolls back.

    ``outbox`` collects serialized events; they are published only after commit.
    """

    tables: TableRepository
    reservations: ReservationRepository
    orders: OrderRepository
    bills: BillRepository
    payments: PaymentRepository
    promotions: PromotionRepository
    tax_settings: TaxSettingRepository
    catalog: CatalogRepository
    outbox: list[str]

    def __enter__(self) -> UnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


UnitOfWorkFactory = Callable[[], UnitOfWork]
