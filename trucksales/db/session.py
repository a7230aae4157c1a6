from contextlib import contextmanager
from functools import wraps
from typing import Callable, Iterator, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from trucksales.core.config import settings
from trucksales.core.errors import StorageError, TruckSalesError
from trucksales.core.observability import log_event
from trucksales.db.base import Base

engine_kwargs: dict[str, object] = {
    "echo": settings.db_echo,
}

if settings.database_url.lower().startswith("sqlite"):
    # The presentation layer may open sessions from more than one thread.
    engine_kwargs["connect_args"] = {"check_same_thread": False}

engine = create_engine(settings.database_url, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

F = TypeVar("F", bound=Callable[..., object])


def init_db(bind: Engine | None = None) -> None:
    import trucksales.models  # noqa: F401

    try:
        Base.metadata.create_all(bind=bind or engine)
    except SQLAlchemyError as exc:
        raise StorageError(f"Cannot initialise database: {exc}") from exc


@contextmanager
def session_scope(factory: sessionmaker = SessionLocal) -> Iterator[Session]:
    db = factory()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session, action: str) -> Iterator[Session]:
    """Commit everything written inside the block, or roll all of it back.

    Domain errors are re-raised as is; database errors surface as ``StorageError``.
    """
    try:
        yield db
        db.commit()
    except TruckSalesError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"{action} failed: {exc}") from exc
    except Exception:
        db.rollback()
        raise


def storage_errors(action: str) -> Callable[[F], F]:
    """Surface database errors raised by the wrapped service call as ``StorageError``."""

    def decorator(fn: F) -> F:
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except SQLAlchemyError as exc:
                raise StorageError(f"{action} failed: {exc}") from exc

        return wrapper  # type: ignore[return-value]

    return decorator


def reset_ledger(bind: Engine | None = None) -> None:
    """Drop every ledger table and create it again, empty.

    Ids restart from 1. Display settings live outside the database and are kept.
    """
    import trucksales.models  # noqa: F401

    target = bind or engine
    try:
        Base.metadata.drop_all(bind=target)
        Base.metadata.create_all(bind=target)
    except SQLAlchemyError as exc:
        raise StorageError(f"Cannot reset database: {exc}") from exc
    log_event("ledger.reset", tables=sorted(Base.metadata.tables))
