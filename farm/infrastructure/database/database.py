from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy.future import Engine
from sqlmodel import Session, SQLModel, create_engine

from ...config import settings
from ...logging_config import get_logger

logger = get_logger(__name__)


def _get_engine() -> Engine:
    # Use effective_database_url which handles both DATABASE_URL and DB_NAME
    database_url = settings.effective_database_url
    connect_args: dict[str, bool] = {}
    engine_kwargs: dict[str, int | bool] = {}

    if "sqlite" in database_url:
        # FastAPI may hand the session to a worker thread
        connect_args["check_same_thread"] = False
    elif "postgresql" in database_url:
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_size"] = 10
        engine_kwargs["max_overflow"] = 20

    return create_engine(
        database_url,
        connect_args=connect_args,
        **engine_kwargs,
    )


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


_engine: Engine | None = None


def get_main_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = _get_engine()
    return _engine


def get_session() -> Generator[Session, None, None]:
    with Session(get_main_engine()) as session:
        yield session


@contextmanager
def unit_of_work(session: Session, operation: str) -> Iterator[Session]:
    """Run one allocator operation as a single transaction.

    Repositories only flush; the commit happens here once the whole
    operation, cascades included, has succeeded. Any exception rolls every
    write of the operation back and propagates unchanged.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("Unit of work rolled back", operation=operation)
        raise
