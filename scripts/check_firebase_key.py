"""Check that FIREBASE_ADMIN_KEY decodes to a usable service account."""

import sys
import os

# Add parent dir to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.config import get_settings
from app.infrastructure.firebase_identity import decode_service_account


def check():
    try:
        info = decode_service_account(get_settings().FIREBASE_ADMIN_KEY)
    except ValueError as e:
        print(f"Firebase key error: {e}")
        return 1

    missing = [key for key in ("project_id", "client_email", "private_key") if not info.get(key)]
    if missing:
        print(f"Firebase key is missing fields: {', '.join(missing)}")
        return 1

    print("Firebase key loaded successfully:")
    print(f"  project_id:   {info['project_id']}")
    print(f"  client_email: {info['client_email']}")
    return 0


if __name__ == "__main__":
    sys.exit(check())
