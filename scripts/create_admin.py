"""Create (or promote) an admin: identity provider login plus local admin record.

Usage: python scripts/create_admin.py EMAIL PASSWORD [DISPLAY_NAME]
"""

import sys
import os

# Add parent dir to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.config import get_settings
from app.core.exceptions import AppError
from app.domain.models.user import User
from app.infrastructure.database import Base, SessionLocal, engine
from app.infrastructure.firebase_identity import FirebaseIdentityProvider
from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from app.application.services.user_service import ensure_admin


def create_admin(email: str, password: str, display_name: str = "Admin"):
    identity = FirebaseIdentityProvider(get_settings().FIREBASE_ADMIN_KEY)

    try:
        account = identity.get_by_email(email)
        if account:
            print(f"Identity account already exists: {account.uid}")
        else:
            account = identity.create_account(email=email, password=password, display_name=display_name)
            print(f"Identity account created: {account.uid}")
    except AppError as e:
        print(f"Identity provider error: {e.message}")
        return 1

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        repo = SQLAlchemyUserRepository(db, User)
        user = ensure_admin(repo, email)
        if user.uid is None:
            repo.update(user, {"uid": account.uid})
        print(f"Admin ready: {user.email}")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(2)
    sys.exit(create_admin(*sys.argv[1:4]))
