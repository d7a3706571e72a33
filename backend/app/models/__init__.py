"""Database models for the metro line service."""

# Import all models to register them with SQLAlchemy metadata
from app.models.base import Base, BaseModel
from app.models.metro import Line, Section, Station

__all__ = [
    # Base
    "Base",
    "BaseModel",
    # Metro models
    "Line",
    "Section",
    "Station",
]
