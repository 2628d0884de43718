"""Firebase Admin SDK initialization and identity provider calls."""

import json
import os

import firebase_admin
from firebase_admin import auth, credentials
from starlette.concurrency import run_in_threadpool
from structlog import get_logger

from oneclick.schemas.users import ProviderUser

logger = get_logger(__name__)

_firebase_app: firebase_admin.App | None = None


def initialize_firebase(
    firebase_credentials_path: str | None = None, firebase_config_json: str | None = None
) -> None:
    """
    Initialize Firebase Admin SDK.

    Looks for credentials in order: raw JSON string, file path, then
    Application Default Credentials.
    """
    global _firebase_app

    if _firebase_app is not None:
        logger.info("Firebase already initialized")
        return

    try:
        cred = None

        if firebase_config_json:
            logger.info("Initializing Firebase with JSON string from environment")
            cred = credentials.Certificate(json.loads(firebase_config_json))
        elif firebase_credentials_path and os.path.exists(firebase_credentials_path):
            logger.info("Initializing Firebase with JSON file", path=firebase_credentials_path)
            cred = credentials.Certificate(firebase_credentials_path)

        if cred:
            _firebase_app = firebase_admin.initialize_app(cred)
        else:
            _firebase_app = firebase_admin.initialize_app()
            logger.info("Firebase initialized with default credentials")

    except Exception as e:
        logger.error("Failed to initialize Firebase", error=str(e))
        raise


def provider_user_from_claims(claims: dict) -> ProviderUser:
    """Map decoded ID token claims to the provider user shape."""
    return ProviderUser(
        id=claims["uid"],
        email=claims.get("email") or "",
        name=claims.get("name"),
        image_url=claims.get("picture"),
    )


async def verify_firebase_token(id_token: str) -> ProviderUser:
    """
    Verify a Firebase ID token.

    Args:
        id_token: Firebase ID token from the client

    Returns:
        The provider user the token belongs to

    Raises:
        ValueError: If token is invalid or expired
    """
    try:
        claims = await run_in_threadpool(auth.verify_id_token, id_token, clock_skew_seconds=10)
    except auth.InvalidIdTokenError as e:
        logger.warning("Invalid or expired Firebase ID token", error=str(e))
        raise ValueError(f"Invalid Firebase ID token: {e!s}")
    except Exception as e:
        logger.error("Firebase token verification failed", error=str(e))
        raise ValueError(f"Token verification failed: {e!s}")

    logger.info("Firebase token verified", uid=claims.get("uid"), email=claims.get("email"))
    return provider_user_from_claims(claims)


async def update_provider_avatar(uid: str, photo_url: str) -> None:
    """Point the provider's avatar for ``uid`` at ``photo_url``."""
    await run_in_threadpool(auth.update_user, uid, photo_url=photo_url)
    logger.info("provider_avatar_updated", uid=uid)


class FirebaseIdentityProvider:
    """Identity service boundary used by the pages."""

    async def verify(self, id_token: str) -> ProviderUser:
        """Verify a provider ID token."""
        return await verify_firebase_token(id_token)

    async def update_avatar(self, uid: str, photo_url: str) -> None:
        """Write a new avatar URL back to the provider."""
        await update_provider_avatar(uid, photo_url)


def get_identity_provider() -> FirebaseIdentityProvider:
    """Dependency returning the identity provider adapter."""
    return FirebaseIdentityProvider()
