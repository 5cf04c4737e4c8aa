"""
carewatch/DB/session.py
======================================
Database Session Configuration Module
======================================

Establishes the SQLAlchemy engine and session factory used throughout the
service.

Usage Example:
-------------
    from carewatch.DB.session import SessionLocal

    with SessionLocal() as db:
        rows = db.query(LocationHistory).all()

Session Configuration:
---------------------
- autocommit=False: Transactions must be explicitly committed
- autoflush=False: Changes are not flushed before queries
- bind=engine: Sessions are bound to the configured engine

Note:
    SQLite connections are shared across FastAPI's threadpool workers, so
    the same-thread check is disabled for SQLite URLs.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from carewatch.Core.config import settings


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# ============================================================
# DATABASE ENGINE CONFIGURATION
# ============================================================
engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args(settings.DATABASE_URL)
)


# ============================================================
# SESSION FACTORY CONFIGURATION
# ============================================================
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)
