"""Exceptions raised by the entry store and credential core."""


class FiliteError(Exception):
    """Base class for every error raised by filite itself."""


class AuthenticationError(FiliteError):
    """The request could not be bound to a user."""

    status_code = 401


class MissingCredentialsError(AuthenticationError):
    """No usable ``Authorization: Basic`` header was sent."""


class InvalidCredentialsError(AuthenticationError):
    """Unknown user or wrong password. Deliberately does not say which."""


class MalformedCredentialsError(AuthenticationError):
    """The Basic credentials could not be decoded."""

    status_code = 400


class HashingError(FiliteError):
    """The password hash could not be computed, e.g. invalid parameters."""


class MalformedHashError(FiliteError):
    """A stored password hash could not be parsed."""


class AllocationError(FiliteError):
    """No free identifier was found within the attempt or time budget."""
