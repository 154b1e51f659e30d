"""MongoDB implementation of UserDirectory."""

import re
import uuid
from datetime import datetime, timezone
from logging import getLogger
from typing import Any

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from adapter.mongodb.connection import USERS_COLLECTION_NAME
from domain.model.errors import DirectoryError, DuplicateError
from domain.model.user import Role, User, normalize_email

logger = getLogger(__name__)

_MUTABLE_FIELDS = {
    'email', 'first_name', 'last_name', 'role', 'is_active', 'is_email_verified',
    'password_hash', 'provider_id', 'avatar', 'last_login',
}


def _duplicate_field(error: DuplicateKeyError) -> str | None:
    key_pattern = (error.details or {}).get('keyPattern') or {}
    for field in ('provider_id', 'email'):
        if field in key_pattern:
            return field
    message = str(error)
    for field in ('provider_id', 'email'):
        if field in message:
            return field
    return None


class MongoUserDirectory:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for users collection."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            create_index_safe(self.collection, [('email', 1)], 'idx_users_email', unique=True)
            create_index_safe(
                self.collection,
                [('provider_id', 1)],
                'idx_users_provider_id',
                unique=True,
                partialFilterExpression={'provider_id': {'$type': 'string'}},
            )
            create_index_safe(self.collection, [('created_at', -1)], 'idx_users_created_at')
            return True
        except PyMongoError as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        return User(
            id=doc['_id'],
            email=doc['email'],
            first_name=doc.get('first_name', ''),
            last_name=doc.get('last_name', ''),
            created_at=doc['created_at'],
            updated_at=doc['updated_at'],
            role=Role(doc.get('role', Role.BUYER.value)),
            is_active=doc.get('is_active', True),
            is_email_verified=doc.get('is_email_verified', False),
            password_hash=doc.get('password_hash'),
            provider_id=doc.get('provider_id'),
            avatar=doc.get('avatar'),
            last_login=doc.get('last_login'),
        )

    def _find_one(self, query: dict, what: str) -> User | None:
        try:
            doc = self.collection.find_one(query)
        except PyMongoError as e:
            logger.error(f"Failed to get user by {what}", extra={"error": str(e)})
            raise DirectoryError(f"Failed to get user by {what}") from e
        return self._to_domain(doc) if doc else None

    # ── write operations ─────────────────────────────────────

    def create(
        self,
        email: str,
        first_name: str,
        last_name: str,
        *,
        password_hash: str | None = None,
        provider_id: str | None = None,
        avatar: str | None = None,
        role: str = 'buyer',
        is_active: bool = True,
        is_email_verified: bool = False,
        last_login: datetime | None = None,
    ) -> User:
        """Insert a new user. The unique indexes make this an atomic insert-if-absent."""
        user_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc)
        user_doc = {
            '_id': user_id,
            'email': normalize_email(email),
            'first_name': first_name,
            'last_name': last_name,
            'role': Role(role).value,
            'is_active': is_active,
            'is_email_verified': is_email_verified,
            'created_at': now,
            'updated_at': now,
        }
        # Absent rather than null so the partial provider_id index ignores local accounts
        optional = {
            'password_hash': password_hash,
            'provider_id': provider_id,
            'avatar': avatar,
            'last_login': last_login,
        }
        user_doc.update({k: v for k, v in optional.items() if v is not None})

        try:
            self.collection.insert_one(user_doc)
        except DuplicateKeyError as e:
            field = _duplicate_field(e)
            logger.warning("User creation rejected: duplicate key", extra={"field": field})
            raise DuplicateError(f"User with this {field or 'key'} already exists", field=field) from e
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"error": str(e)})
            raise DirectoryError("Failed to create user") from e

        logger.info("User created", extra={"userId": user_id, "providerLinked": provider_id is not None})
        return self._to_domain(user_doc)

    def update(self, user_id: str, **attributes: Any) -> User | None:
        """Apply attributes in one atomic findOneAndUpdate.

        last_login goes through $max so concurrent logins never move it backwards.
        """
        unknown = set(attributes) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user attributes: {sorted(unknown)}")

        changes = dict(attributes)
        last_login = changes.pop('last_login', None)
        if 'email' in changes:
            changes['email'] = normalize_email(changes['email'])
        if 'role' in changes:
            changes['role'] = Role(changes['role']).value
        changes['updated_at'] = datetime.now(timezone.utc)

        update: dict[str, dict] = {'$set': changes}
        if last_login is not None:
            update['$max'] = {'last_login': last_login}

        try:
            doc = self.collection.find_one_and_update(
                {'_id': user_id},
                update,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            field = _duplicate_field(e)
            logger.warning("User update rejected: duplicate key", extra={"userId": user_id, "field": field})
            raise DuplicateError(f"User with this {field or 'key'} already exists", field=field) from e
        except PyMongoError as e:
            logger.error("Failed to update user", extra={"userId": user_id, "error": str(e)})
            raise DirectoryError("Failed to update user") from e

        if not doc:
            logger.warning("User update matched no document", extra={"userId": user_id})
            return None
        return self._to_domain(doc)

    # ── read operations ──────────────────────────────────────

    def get_by_email(self, email: str) -> User | None:
        """Find a user by email. Return User or None if not found."""
        return self._find_one({'email': normalize_email(email)}, 'email')

    def get_by_provider_id(self, provider_id: str) -> User | None:
        """Find a user by federated provider id. Return User or None if not found."""
        return self._find_one({'provider_id': provider_id}, 'provider_id')

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        return self._find_one({'_id': user_id}, 'id')

    def find_many(
        self,
        skip: int = 0,
        limit: int = 20,
        role: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> tuple[list[User], int]:
        """List users with filtering, sorting, and pagination."""
        query: dict = {}
        if role:
            query['role'] = Role(role).value
        if is_active is not None:
            query['is_active'] = is_active
        if search:
            pattern = {'$regex': re.escape(search), '$options': 'i'}
            query['$or'] = [{'email': pattern}, {'first_name': pattern}, {'last_name': pattern}]

        try:
            total_count = self.collection.count_documents(query)
            docs = (
                self.collection.find(query)
                .sort('created_at', -1)
                .skip(skip)
                .limit(limit)
            )
            users = [self._to_domain(doc) for doc in docs]
        except PyMongoError as e:
            logger.error("Failed to list users", extra={"error": str(e)})
            raise DirectoryError("Failed to list users") from e

        return users, total_count
