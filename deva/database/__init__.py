"""Database configuration, models, and session management."""

from deva.database.config import engine, Base, get_db
from deva.database import models

__all__ = ["engine", "Base", "get_db", "models"]
