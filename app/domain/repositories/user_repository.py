"""
User Repository Interface.
"""

from typing import Any, List, Optional

from app.domain.repositories.base import BaseRepository
from app.domain.models.user import User


class UserRepository(BaseRepository[User]):
    """Interface for User-specific operations. Email is the natural key."""

    def get_by_email(self, email: str, for_update: bool = False) -> Optional[User]:
        """Get a user by email, optionally locking the row until commit."""
        ...

    def create_if_absent(self, obj_in: Any) -> tuple[User, bool]:
        """Insert unless the email exists; returns (user, created)."""
        ...

    def list_by_role(self, role: Optional[str] = None) -> List[User]:
        """List users, newest first, optionally restricted to one role."""
        ...
