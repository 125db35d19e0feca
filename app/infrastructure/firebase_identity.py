"""Firebase Authentication client (identity provider).

Credentials come from FIREBASE_ADMIN_KEY, a base64 encoded service account
JSON. The Firebase app is initialized on first use.
"""

import base64
import json
from typing import Any, Dict, Optional

import firebase_admin
import structlog
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from app.core.exceptions import (
    ConflictException,
    UnauthorizedException,
    UpstreamServiceException,
    ValidationException,
)
from app.domain.gateways import IdentityAccount

logger = structlog.get_logger(__name__)

APP_NAME = "urbanfix"

# Attribute names accepted by firebase_admin.auth.update_user
UPDATABLE_ATTRIBUTES = {"display_name", "photo_url", "password", "disabled"}


def decode_service_account(encoded: str) -> Dict[str, Any]:
    """Decode the base64 service account key; raises ValueError when malformed."""
    if not encoded:
        raise ValueError("FIREBASE_ADMIN_KEY is empty")
    return json.loads(base64.b64decode(encoded).decode("utf-8"))


def _public_url(value: Optional[str]) -> Optional[str]:
    # Firebase only stores absolute URLs; local upload paths stay in our database
    if value and value.startswith(("http://", "https://")):
        return value
    return None


def _to_account(record) -> IdentityAccount:
    return IdentityAccount(
        uid=record.uid,
        email=record.email,
        display_name=record.display_name,
        photo_url=record.photo_url,
    )


class FirebaseIdentityProvider:
    """IdentityProvider backed by the Firebase Admin SDK."""

    def __init__(self, service_account_key: str):
        self._service_account_key = service_account_key
        self._app = None

    @property
    def app(self):
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(APP_NAME)
            except ValueError:
                try:
                    info = decode_service_account(self._service_account_key)
                    certificate = credentials.Certificate(info)
                except ValueError as e:
                    logger.error("Firebase credentials unavailable", error=str(e))
                    raise UpstreamServiceException("Identity provider is not configured") from e
                self._app = firebase_admin.initialize_app(certificate, name=APP_NAME)
                logger.info("Firebase app initialized", project_id=info.get("project_id"))
        return self._app

    def create_account(
        self,
        email: str,
        password: str,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> IdentityAccount:
        try:
            record = auth.create_user(
                email=email,
                password=password,
                display_name=display_name or None,
                photo_url=_public_url(photo_url),
                app=self.app,
            )
        except auth.EmailAlreadyExistsError as e:
            raise ConflictException("Identity account already exists", details={"email": email}) from e
        except ValueError as e:
            raise ValidationException(str(e)) from e
        except FirebaseError as e:
            logger.error("Firebase create_user failed", email=email, error=str(e))
            raise UpstreamServiceException("Could not create identity account") from e

        logger.info("Identity account created", email=email, uid=record.uid)
        return _to_account(record)

    def get_by_email(self, email: str) -> Optional[IdentityAccount]:
        try:
            record = auth.get_user_by_email(email, app=self.app)
        except auth.UserNotFoundError:
            return None
        except FirebaseError as e:
            logger.error("Firebase get_user_by_email failed", email=email, error=str(e))
            raise UpstreamServiceException("Could not look up identity account") from e
        return _to_account(record)

    def update_account(self, uid: str, **attributes: Any) -> IdentityAccount:
        changes = {key: value for key, value in attributes.items() if key in UPDATABLE_ATTRIBUTES}
        if "photo_url" in changes:
            changes["photo_url"] = _public_url(changes["photo_url"])
            if changes["photo_url"] is None:
                del changes["photo_url"]

        try:
            record = auth.update_user(uid, app=self.app, **changes)
        except auth.UserNotFoundError as e:
            raise UpstreamServiceException("Identity account not found", details={"uid": uid}) from e
        except ValueError as e:
            raise ValidationException(str(e)) from e
        except FirebaseError as e:
            logger.error("Firebase update_user failed", uid=uid, error=str(e))
            raise UpstreamServiceException("Could not update identity account") from e
        return _to_account(record)

    def delete_account(self, uid: str) -> None:
        try:
            auth.delete_user(uid, app=self.app)
        except auth.UserNotFoundError:
            return
        except FirebaseError as e:
            logger.error("Firebase delete_user failed", uid=uid, error=str(e))
            raise UpstreamServiceException("Could not delete identity account") from e
        logger.info("Identity account deleted", uid=uid)

    def verify_token(self, token: str) -> Dict[str, Any]:
        try:
            return auth.verify_id_token(token, app=self.app)
        except auth.CertificateFetchError as e:
            raise UpstreamServiceException("Could not verify token") from e
        except (auth.InvalidIdTokenError, auth.UserDisabledError, ValueError) as e:
            raise UnauthorizedException("Invalid or expired token") from e
