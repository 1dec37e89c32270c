import logging
import time
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

logger = logging.getLogger(__name__)


class Database:
    """Engine + fábrica de sessões, criado uma vez por processo e injetado."""

    def __init__(
        self,
        url: str,
        slow_query_threshold: float = 1.0,
        pool_recycle: int = 300,
        echo: bool = False,
    ):
        self.url = url
        self.slow_query_threshold = slow_query_threshold

        if url.startswith("sqlite"):
            self.engine = create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
            _serialize_sqlite_writers(self.engine)
        else:
            self.engine = create_engine(
                url,
                echo=echo,
                pool_pre_ping=True,
                pool_recycle=pool_recycle,
            )

        _log_slow_queries(self.engine, slow_query_threshold)
        logger.info(f"Database engine created for {self.engine.url.render_as_string(hide_password=True)}")

    def create_db_and_tables(self) -> None:
        # importa os models para registrar as tabelas no metadata
        from salon_booking.models import (  # noqa: F401
            appointment,
            business_hours,
            customer,
            notification,
            service,
            setting,
            staff,
        )

        SQLModel.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

    def dispose(self) -> None:
        self.engine.dispose()


def _serialize_sqlite_writers(engine: Engine) -> None:
    # SQLite não tem SELECT ... FOR UPDATE: cada transação pega o lock de
    # escrita logo no BEGIN, então bookings concorrentes ficam em fila.
    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _log_slow_queries(engine: Engine, threshold: float) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > threshold:
            logger.warning(f"Slow query ({total:.2f}s): {statement[:200]}...")


def get_session(request: Request) -> Iterator[Session]:
    database: Database = request.app.state.database
    with database.session() as session:
        yield session
