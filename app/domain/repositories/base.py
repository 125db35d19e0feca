"""
Base Repository Interface.
Defines the standard contract for data access operations.
"""

from typing import Any, List, Optional, Protocol, TypeVar

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    """Interface for generic CRUD operations."""

    def get_by_id(self, id: Any) -> Optional[T]:
        """Get a single entity by primary key."""
        ...

    def list(self, skip: int = 0, limit: int = 100) -> List[T]:
        """List entities with pagination."""
        ...

    def create(self, obj_in: Any) -> T:
        """Create a new entity from a dict or pydantic model."""
        ...

    def update(self, db_obj: T, obj_in: Any) -> T:
        """Set the supplied fields on an existing entity."""
        ...

    def delete(self, id: Any) -> Optional[T]:
        """Delete an entity by primary key."""
        ...
