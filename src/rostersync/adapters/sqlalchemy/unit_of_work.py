"""SQLAlchemy-backed unit of work for the rostersync stores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from rostersync.adapters.sqlalchemy.migrations import upgrade_head
from rostersync.adapters.sqlalchemy.repositories import (
    SqlAlchemyIdentityStore,
    SqlAlchemyProfileStore,
    SqlAlchemyTeamStore,
    store_errors,
)
from rostersync.config.storage import DatabaseConfig, get_database_config
from rostersync.domain.ports.unit_of_work import StoreRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call rostersync.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def create_configured_engine(config: DatabaseConfig | None = None) -> Engine:
    database = config or get_database_config()
    return create_engine(
        database.uri,
        future=True,
        pool_pre_ping=True,
        connect_args=database.connect_args(),
    )


def startup(
    *,
    engine: Engine | None = None,
    database: DatabaseConfig | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, run migrations, and build the session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_configured_engine(database)
    upgrade_head(engine=resolved_engine)
    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyUnitOfWork:
    """One session shared by the identity, profile and team stores."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None
        self._repositories: StoreRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self.session = self.session_factory()
        self._repositories = StoreRepositories(
            identities=SqlAlchemyIdentityStore(self.session),
            profiles=SqlAlchemyProfileStore(self.session),
            teams=SqlAlchemyTeamStore(self.session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        # uncommitted work is discarded on close
        try:
            self.rollback()
        finally:
            self.session.close()
            self.session = None
            self._repositories = None
        return False

    def commit(self) -> None:
        with store_errors("commit"):
            self.session.commit()

    def rollback(self) -> None:
        with store_errors("rollback"):
            self.session.rollback()

    @property
    def repositories(self) -> StoreRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


if TYPE_CHECKING:
    from rostersync.domain.ports.unit_of_work import StoreUnitOfWork

    _uow_check: StoreUnitOfWork = SqlAlchemyUnitOfWork()
