import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import DatabaseError
from .models import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the engine and session factory for one process.
    Built in the app lifespan and kept on app.state; nothing connects at import time.
    """

    def __init__(self, url: str, schema: Optional[str] = None):
        self.url = make_url(url)
        backend = self.url.get_backend_name()
        self.schema = schema if backend == "postgresql" else None

        kwargs = {"pool_pre_ping": True}
        if backend == "sqlite":
            kwargs["connect_args"] = {"check_same_thread": False}
            # In-memory SQLite lives and dies with its connection, so share one
            if self.url.database in (None, "", ":memory:"):
                kwargs["poolclass"] = StaticPool
        elif self.schema:
            # search_path so unqualified tables use our schema
            kwargs["connect_args"] = {"options": f"-csearch_path={self.schema},public"}

        self.engine = create_engine(self.url, **kwargs)
        self.SessionLocal = sessionmaker(
            bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False
        )
        self.initialized = False
        self._init_lock = threading.Lock()

    def init(self) -> None:
        """
        Ensure the schema exists, then create tables (idempotent).
        Called at application startup, and by ensure_initialized() until it succeeds.
        """
        if self.schema:
            with self.engine.begin() as conn:
                conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{self.schema}"'))
        Base.metadata.create_all(bind=self.engine)
        self.initialized = True

    def ensure_initialized(self) -> None:
        """Retry init() for a process that started while the database was down."""
        if self.initialized:
            return
        with self._init_lock:
            if self.initialized:
                return
            try:
                self.init()
            except SQLAlchemyError as e:
                logger.error(f"Database still unavailable: {e}", extra={"error_code": "DATABASE_ERROR"})
                raise DatabaseError("init") from e
            logger.info("Database initialized after a failed startup")

    @contextmanager
    def session(self) -> Iterator[Session]:
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_session(request: Request) -> Iterator[Session]:
    """
    FastAPI dependency: yields a DB session, commits on success, rolls back on error.
    """
    db = get_database(request)
    db.ensure_initialized()
    with db.session() as s:
        yield s
