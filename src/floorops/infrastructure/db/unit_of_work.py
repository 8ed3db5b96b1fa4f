from __future__ import annotations

from types import TracebackType

from sqlalchemy import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from floorops.application.ports.unit_of_work import UnitOfWork
from floorops.domain.common.errors import ConflictError
from floorops.infrastructure.db.repositories.billing_repo import (
    SqlAlchemyBillRepository,
    SqlAlchemyPaymentRepository,
    SqlAlchemyPromotionRepository,
    SqlAlchemyTaxSettingRepository,
)
from floorops.infrastructure.db.repositories.menu_repo import SqlAlchemyCatalogRepository
from floorops.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from floorops.infrastructure.db.repositories.reservation_repo import (
    SqlAlchemyReservationRepository,
)
from floorops.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from floorops.infrastructure.db.session import get_engine


class SqlAlchemyUnitOfWork(UnitOfWork):
    """One ``Session`` per block; anything not committed is rolled back on exit."""

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine
        self._session: Session | None = None
        self.outbox: list[str] = []

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        session = Session(self._engine or get_engine(), expire_on_commit=False)
        self._session = session
        self.tables = SqlAlchemyTableRepository(session)
        self.reservations = SqlAlchemyReservationRepository(session)
        self.orders = SqlAlchemyOrderRepository(session)
        self.bills = SqlAlchemyBillRepository(session)
        self.payments = SqlAlchemyPaymentRepository(session)
        self.promotions = SqlAlchemyPromotionRepository(session)
        self.tax_settings = SqlAlchemyTaxSettingRepository(session)
        self.catalog = SqlAlchemyCatalogRepository(session)
        self.outbox = []
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        session = self._require_session()
        try:
            session.rollback()
        finally:
            session.close()
            self._session = None

    def commit(self) -> None:
        session = self._require_session()
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConflictError(
                "a concurrent write conflicted with this change",
                details={"constraint": _constraint_name(exc)},
            ) from exc

    def rollback(self) -> None:
        self._require_session().rollback()

    def _require_session(self) -> Session:
        if self._session is None:
            raise RuntimeError("unit of work used outside its with-block")
        return self._session


def _constraint_name(exc: IntegrityError) -> str | None:
    diag = getattr(exc.orig, "diag", None)
    return getattr(diag, "constraint_name", None)
