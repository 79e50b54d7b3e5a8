# checkout_engine/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from checkout_engine.utils.settings import DATABASE_URL, DB_STATEMENT_TIMEOUT_MS
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)


def _connect_args(url: str) -> dict:
    #per-statement timeout on every pooled connection
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": DB_STATEMENT_TIMEOUT_MS / 1000}
    if url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}"}
    return {}


engine = create_engine(
    DATABASE_URL,
    connect_args=_connect_args(DATABASE_URL),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    #models must be imported before create_all reads the metadata
    import checkout_engine.data.models  # noqa: F401

    logger.info(f"Creating tables: {sorted(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=engine)
