"""Authentication service for HTTP Basic credentials."""

import asyncio
import base64
import binascii
import logging

from sqlalchemy.orm import Session

from filite.exceptions import (
    InvalidCredentialsError,
    MalformedCredentialsError,
    MissingCredentialsError,
)
from filite.schemas.auth import UserRecord
from filite.schemas.hashing import HashParams
from filite.services.hasher import CredentialHasher
from filite.services.users import UserStore

logger = logging.getLogger(__name__)

REALM = "filite"
CHALLENGE = f'Basic realm="{REALM}"'


def parse_basic_authorization(header: str | None) -> tuple[str, bytes]:
    """Split an ``Authorization: Basic`` header into username and password.

    The pair is split on the first ``:`` so passwords may contain colons.
    The password is returned as raw bytes.
    """
    if not header:
        raise MissingCredentialsError("Missing Authorization header")

    scheme, _, encoded = header.strip().partition(" ")
    if scheme.lower() != "basic" or not encoded.strip():
        raise MissingCredentialsError("Authorization scheme is not Basic")

    try:
        decoded = base64.b64decode(encoded.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedCredentialsError("Invalid base64 in Basic credentials") from e

    username, sep, password = decoded.partition(b":")
    if not sep:
        raise MalformedCredentialsError("Basic credentials have no ':' separator")

    try:
        return username.decode("utf-8"), password
    except UnicodeDecodeError as e:
        raise MalformedCredentialsError("Username is not valid UTF-8") from e


class AuthenticationGate:
    """Turns an Authorization header into a verified user.

    Unknown users and wrong passwords fail the same way. Unknown users are
    still checked against a dummy hash so both paths take as long.
    """

    def __init__(self, hasher: CredentialHasher, params: HashParams):
        self.hasher = hasher
        self.params = params
        self._dummy_hash: str | None = None

    async def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = await self.hasher.hash(b"", self.params)
        return self._dummy_hash

    async def verify_user(self, user: UserRecord | None, password: bytes) -> bool:
        """Check a password for a possibly absent user."""
        if user is None:
            await self.hasher.verify(await self._get_dummy_hash(), password, self.params)
            return False
        return await self.hasher.verify(user.password_hash, password, self.params)

    async def authenticate(self, db: Session, header: str | None) -> UserRecord:
        """Authenticate a request from its Authorization header."""
        username, password = parse_basic_authorization(header)
        user = await asyncio.to_thread(UserStore(db).lookup, username)

        if not await self.verify_user(user, password):
            logger.info(f"Failed authentication for {username!r}")
            raise InvalidCredentialsError("Invalid authentication credentials")

        return user
