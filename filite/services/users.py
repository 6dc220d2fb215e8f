"""User store: principals allowed to upload and delete entries."""

import logging

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from filite.models.mixins import utcnow
from filite.models.user import User
from filite.schemas.auth import UserRecord
from filite.schemas.hashing import HashParams
from filite.services.hasher import CredentialHasher

logger = logging.getLogger(__name__)


def validate_username(user_id: str) -> str:
    """Reject names that HTTP Basic credentials cannot carry."""
    if not user_id:
        raise ValueError("Username must not be empty")
    if ":" in user_id:
        raise ValueError("Username must not contain ':'")
    return user_id


class UserStore:
    """User operations scoped to one session."""

    def __init__(self, db: Session, hasher: CredentialHasher | None = None):
        self.db = db
        self.hasher = hasher

    def lookup(self, user_id: str) -> UserRecord | None:
        """Get a user by id."""
        stmt = select(User).where(User.id == user_id).execution_options(populate_existing=True)
        user = self.db.execute(stmt).scalar_one_or_none()
        return UserRecord.model_validate(user) if user is not None else None

    async def create(
        self, user_id: str, password: str | bytes, admin: bool, hash_params: HashParams
    ) -> bool:
        """Create a user unless the id is taken.

        The password is hashed on the hasher's worker pool before the insert.
        Returns ``False`` if a user with this id already exists. Raises
        ``ValueError`` for names containing ``:``, which Basic auth cannot send.
        """
        validate_username(user_id)
        if self.hasher is None:
            raise RuntimeError("UserStore.create needs a CredentialHasher")
        if isinstance(password, str):
            password = password.encode("utf-8")

        password_hash = await self.hasher.hash(password, hash_params)
        return self.insert(user_id, password_hash, admin)

    def insert(self, user_id: str, password_hash: str, admin: bool = False) -> bool:
        """Insert an already hashed user unless the id is taken."""
        validate_username(user_id)
        stmt = insert(User).values(
            id=user_id, password_hash=password_hash, admin=admin, created=utcnow()
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"User {user_id} already exists")
            return False
        logger.info(f"Created {'admin ' if admin else ''}user {user_id}")
        return True

    def delete(self, user_id: str) -> UserRecord | None:
        """Remove a user. Entries they own are kept."""
        user = self.lookup(user_id)
        if user is None:
            return None

        result = self.db.execute(
            delete(User).where(User.id == user_id).execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            return None
        self.db.commit()
        logger.info(f"Deleted user {user_id}")
        return user

    def list_users(self) -> list[UserRecord]:
        """All users ordered by id."""
        users = self.db.scalars(select(User).order_by(User.id))
        return [UserRecord.model_validate(user) for user in users]
