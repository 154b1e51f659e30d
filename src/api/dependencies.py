from functools import lru_cache

from fastapi import Depends, HTTPException

from adapter.external.google_oauth import GoogleOAuthAdapter
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.user_directory import MongoUserDirectory
from adapter.redis.session_store import RedisSessionStore
from adapter.security.bcrypt_hasher import BcryptPasswordHasher
from port.identity_provider import IdentityProvider
from port.password_hasher import PasswordHasher
from port.session_store import SessionStore
from port.user_directory import UserDirectory
from services.credential_verifier import CredentialVerifier
from services.federated_identity_resolver import FederatedIdentityResolver
from services.session_principal_store import SessionPrincipalStore


def _get_db():
    """Get MongoDB database, raising 503 if unavailable."""
    client = get_mongodb_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return client[DATABASE_NAME]


def get_user_directory() -> UserDirectory:
    return MongoUserDirectory(_get_db())


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return BcryptPasswordHasher()


@lru_cache
def get_session_store() -> SessionStore:
    return RedisSessionStore()


@lru_cache
def get_identity_provider() -> IdentityProvider:
    return GoogleOAuthAdapter()


def get_credential_verifier(
    directory: UserDirectory = Depends(get_user_directory),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> CredentialVerifier:
    return CredentialVerifier(directory, hasher)


def get_federated_resolver(
    directory: UserDirectory = Depends(get_user_directory),
) -> FederatedIdentityResolver:
    return FederatedIdentityResolver(directory)


def get_session_principal_store(
    directory: UserDirectory = Depends(get_user_directory),
    sessions: SessionStore = Depends(get_session_store),
) -> SessionPrincipalStore:
    return SessionPrincipalStore(directory, sessions)
