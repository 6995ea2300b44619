from sqlalchemy import Enum, create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from app.core.config import settings

# SQLite needs connect_args for FastAPI compatibility
connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
engine = create_engine(settings.database_url, connect_args=connect_args, pool_pre_ping=True)

# Enable foreign key enforcement in SQLite (off by default)
if settings.database_url.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def value_enum(enum_cls, **kwargs) -> Enum:
    """SQLAlchemy Enum that stores member values ("book") instead of names ("BOOK")."""
    return Enum(enum_cls, values_callable=lambda e: [m.value for m in e], **kwargs)
