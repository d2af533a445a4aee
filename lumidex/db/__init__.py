"""
Database module containing session management and base models.
"""
from lumidex.db.session import get_db, async_session_maker, engine, init_db
from lumidex.db.base import Base

__all__ = ["get_db", "async_session_maker", "engine", "init_db", "Base"]
