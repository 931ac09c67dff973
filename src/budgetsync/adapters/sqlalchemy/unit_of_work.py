"""SQLAlchemy-backed unit of work for the local reconciliation state."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from budgetsync.adapters.sqlalchemy.mappings import create_all_tables
from budgetsync.adapters.sqlalchemy.repositories import SqlAlchemyTrackedNotificationRepository
from budgetsync.config.storage import get_database_config

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StateSessionError(RuntimeError):
    """Raised when the state repository is used outside an open unit of work."""


class StateStore:
    """Owns the engine of the state database and hands out units of work.

    The ``notification_state`` table is created on construction if it is missing.
    """

    def __init__(self, engine: Engine) -> None:
        create_all_tables(engine)
        self.engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_uri(cls, uri: str | None = None) -> StateStore:
        return cls(create_engine(uri or get_database_config().uri, future=True))

    def unit_of_work(self) -> SqlAlchemyStateUnitOfWork:
        return SqlAlchemyStateUnitOfWork(self._sessions)

    def close(self) -> None:
        self.engine.dispose()


class SqlAlchemyStateUnitOfWork:
    """One session over ``notification_state``, committed explicitly by the caller."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None
        self._notifications: SqlAlchemyTrackedNotificationRepository | None = None

    def __enter__(self) -> SqlAlchemyStateUnitOfWork:
        if self._session is not None:
            raise StateSessionError("Unit of work is already open")
        self._session = self._session_factory()
        self._notifications = SqlAlchemyTrackedNotificationRepository(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self._open_session()
        if exc_type is not None:
            session.rollback()
        session.close()
        self._session = None
        self._notifications = None
        return False

    @property
    def notifications(self) -> SqlAlchemyTrackedNotificationRepository:
        if self._notifications is None:
            raise StateSessionError("Unit of work used outside its context")
        return self._notifications

    def commit(self) -> None:
        self._open_session().commit()

    def rollback(self) -> None:
        self._open_session().rollback()

    def _open_session(self) -> Session:
        if self._session is None:
            raise StateSessionError("Unit of work used outside its context")
        return self._session


if TYPE_CHECKING:
    from budgetsync.domain.ports.persistence import StateUnitOfWork

    _uow_check: StateUnitOfWork = SqlAlchemyStateUnitOfWork(sessionmaker())
