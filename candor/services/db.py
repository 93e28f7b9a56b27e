from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from candor.core.config import get_settings
from candor.models import issue, profile, reference, token  # noqa: F401  (register mappers)
from candor.models.base import Base


def build_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    is_sqlite = url.drivername.startswith("sqlite")
    in_memory = is_sqlite and (not url.database or url.database == ":memory:")

    if is_sqlite and not in_memory:
        db_path = Path(url.database).expanduser()
        if db_path.parent:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        # Rebuild URL so SQLAlchemy can handle relative paths nicely
        database_url = f"sqlite:///{db_path}"

    kwargs: dict = {"echo": False}
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
    if in_memory:
        kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, **kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record) -> None:  # type: ignore[no-untyped-def]
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


_settings = get_settings()
_engine = build_engine(_settings.database_url)
SessionLocal = sessionmaker(bind=_engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine | None = None) -> None:
    bind = engine or _engine
    Base.metadata.create_all(bind=bind)
    logger.info("Database schema ready on {url}", url=bind.url.render_as_string(hide_password=True))


@contextmanager
def db_session() -> Generator[Session, None, None]:
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    with db_session() as session:
        yield session
