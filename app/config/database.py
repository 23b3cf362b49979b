"""Database configuration and connection setup"""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool

from app.config.settings import get_settings

settings = get_settings()


def _use_immediate_sqlite_transactions(sqlite_engine: Engine) -> None:
    """
    Let SQLAlchemy own SQLite transactions instead of pysqlite, and open
    each one with BEGIN IMMEDIATE so concurrent writers queue on the busy
    timeout instead of failing with "database is locked". Also makes
    SAVEPOINT behave.
    """

    @event.listens_for(sqlite_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite gets a thread-shareable connection and a busy timeout."""
    if database_url.startswith("sqlite"):
        sqlite_engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
            echo=False,
        )
        _use_immediate_sqlite_transactions(sqlite_engine)
        return sqlite_engine

    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        echo=False,
    )


# Create database engine with connection pooling
engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Database dependency for FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind: Engine = engine):
    """Create all booking tables that do not exist yet"""
    from app.models import Base

    Base.metadata.create_all(bind=bind)
    print("✅ Database tables created successfully!")


if __name__ == "__main__":
    create_tables()
