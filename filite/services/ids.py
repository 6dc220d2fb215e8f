"""Short identifier generation."""

import logging
import re
import secrets
import string
import time
from typing import TYPE_CHECKING

from filite.exceptions import AllocationError

if TYPE_CHECKING:
    from filite.services.entries import EntryStore

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_letters + string.digits
ID_MAX_LENGTH = 64
ID_PATTERN = re.compile(r"^[A-Za-z0-9]{1,64}$")

# Single path segments answered by other routes
RESERVED_IDS = frozenset({"health", "me", "f", "l", "t"})


def generate_id(length: int) -> str:
    """Generate a uniformly random alphanumeric identifier."""
    if length < 1 or length > ID_MAX_LENGTH:
        raise ValueError(f"Identifier length must be between 1 and {ID_MAX_LENGTH}, got {length}")
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def is_valid_id(value: str) -> bool:
    """Check if a string is a well-formed entry identifier that GET can reach."""
    return bool(ID_PATTERN.match(value)) and value not in RESERVED_IDS


class IdAllocator:
    """Finds identifiers that are not currently used by any entry.

    Only a best effort against races: two allocators may hand out the same
    free id, and the store's insert-if-absent decides which insert wins.
    """

    def __init__(self, store: "EntryStore", max_attempts: int = 32):
        self.store = store
        self.max_attempts = max_attempts

    def allocate(self, length: int, timeout: float | None = None) -> str:
        """Return a random identifier that is unused at the time of the check."""
        deadline = time.monotonic() + timeout if timeout is not None else None

        for attempt in range(1, self.max_attempts + 1):
            if deadline is not None and time.monotonic() > deadline:
                raise AllocationError(
                    f"Identifier allocation timed out after {attempt - 1} attempts"
                )

            candidate = generate_id(length)
            if candidate in RESERVED_IDS:
                logger.debug(f"Skipping reserved identifier {candidate}")
                continue
            if not self.store.exists(candidate):
                return candidate
            logger.debug(f"Identifier collision on attempt {attempt}: {candidate}")

        raise AllocationError(
            f"No free identifier of length {length} after {self.max_attempts} attempts"
        )
