"""Password hashing with argon2id, kept off the event loop."""

import asyncio
import hashlib
import hmac
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial

from passlib.hash import argon2

from filite.exceptions import HashingError, MalformedHashError
from filite.schemas.hashing import HashParams

logger = logging.getLogger(__name__)


def _handler(params: HashParams):
    """Build an argon2id handler configured with the non-default parameters."""
    settings = {"type": "ID"}
    if params.hash_length is not None:
        settings["digest_size"] = params.hash_length
    if params.salt_length is not None:
        settings["salt_size"] = params.salt_length
    if params.lanes is not None:
        settings["parallelism"] = params.lanes
    if params.mem_cost is not None:
        settings["memory_cost"] = params.mem_cost
    if params.time_cost is not None:
        settings["rounds"] = params.time_cost
    try:
        return argon2.using(**settings)
    except (TypeError, ValueError) as e:
        raise HashingError(f"Invalid argon2 parameters: {e}") from e


def _peppered(password: bytes, secret: bytes | None) -> bytes:
    """Mix the server-side secret into the password. The secret is never stored."""
    if not secret:
        return password
    return hmac.new(secret, password, hashlib.sha256).hexdigest().encode("ascii")


def hash_password(password: bytes, params: HashParams) -> str:
    """Hash a password with a fresh random salt.

    The returned PHC string embeds algorithm, version, cost parameters and
    salt, so it is all ``verify_password`` needs besides the secret.
    """
    handler = _handler(params)
    try:
        return handler.hash(_peppered(password, params.secret))
    except (TypeError, ValueError) as e:
        raise HashingError(f"Failed to hash password: {e}") from e


def verify_password(encoded: str, password: bytes, params: HashParams) -> bool:
    """Verify a password against its encoded hash.

    Returns ``False`` for a wrong password or a different secret. Raises
    ``MalformedHashError`` only if ``encoded`` is not an argon2 hash at all.
    """
    try:
        return argon2.verify(_peppered(password, params.secret), encoded)
    except ValueError as e:
        raise MalformedHashError(f"Malformed password hash: {e}") from e


class CredentialHasher:
    """Runs hashing and verification on a bounded pool of worker threads.

    argon2 releases the GIL, so several hashes proceed in parallel while the
    event loop keeps serving unrelated requests.
    """

    def __init__(self, max_workers: int = 2):
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="filite-hasher"
        )

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(func, *args))

    async def hash(self, password: bytes, params: HashParams) -> str:
        """Hash a password in the worker pool."""
        return await self._run(hash_password, password, params)

    async def verify(self, encoded: str, password: bytes, params: HashParams) -> bool:
        """Verify a password in the worker pool."""
        return await self._run(verify_password, encoded, password, params)

    def shutdown(self) -> None:
        """Stop the worker pool, waiting for hashes in flight."""
        logger.debug("Shutting down password hasher pool")
        self._executor.shutdown(wait=True)
