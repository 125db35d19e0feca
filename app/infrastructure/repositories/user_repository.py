"""
SQLAlchemy Implementation of User Repository.
"""

from typing import Any, List, Optional

from sqlalchemy.exc import IntegrityError

from app.domain.models.user import User
from app.domain.repositories.user_repository import UserRepository
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository, as_dict


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], UserRepository):
    """User repository implementation using SQLAlchemy."""

    def get_by_email(self, email: str, for_update: bool = False) -> Optional[User]:
        query = self.db.query(User).filter(User.email == email)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def create_if_absent(self, obj_in: Any) -> tuple[User, bool]:
        data = as_dict(obj_in)
        existing = self.get_by_email(data["email"])
        if existing:
            return existing, False

        user = User(**data)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration of the same email
            self.db.rollback()
            return self.get_by_email(data["email"]), False

        self.db.refresh(user)
        return user, True

    def list_by_role(self, role: Optional[str] = None) -> List[User]:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at.desc(), User.id.desc()).all()
