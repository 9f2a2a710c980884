"""
Storage module - Key-value persistence for the candidate profile.
"""

from byc.services.storage.database import (
    Base,
    close_db,
    get_engine,
    get_session,
    init_db,
    reset_engine,
)
from byc.services.storage.models_db import KeyValue
from byc.services.storage.repository import KeyValueRepository, ProfileRepository

__all__ = [
    "Base",
    "KeyValue",
    "KeyValueRepository",
    "ProfileRepository",
    "close_db",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
]
