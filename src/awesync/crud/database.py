"""Engine creation and schema initialization"""

from sqlalchemy import event
from sqlmodel import SQLModel, create_engine

from awesync.crud import models  # noqa: F401  registers tables on SQLModel.metadata


def _enable_sqlite_savepoints(engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT/ROLLBACK TO behave on pysqlite."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def make_engine(db_url: str):
    if db_url.startswith("sqlite"):
        engine = create_engine(db_url, echo=False, connect_args={"check_same_thread": False})
        _enable_sqlite_savepoints(engine)
        return engine
    return create_engine(db_url, echo=False)


def init_db(engine) -> None:
    SQLModel.metadata.create_all(engine)
