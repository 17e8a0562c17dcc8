"""
Persistence layer: table rendering, engine/session management and the storage gateway.
"""

from .database import Database, build_engine
from .gateway import StorageGateway
from .tables import build_metadata

__all__ = ["Database", "StorageGateway", "build_engine", "build_metadata"]
