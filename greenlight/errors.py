"""Domain error taxonomy.

Services raise these; the API layer maps each one to an HTTP response.
Anything not derived from GreenlightError is treated as a server error.
"""

from typing import Dict, Optional


class GreenlightError(Exception):
    """Base class for anticipated, domain-level failures."""


class ValidationFailedError(GreenlightError):
    """One or more user-correctable field errors.

    Attributes:
        violations: Mapping of field name to message, aggregated rather
            than stopping at the first failure.
    """

    def __init__(self, violations: Dict[str, str]):
        self.violations = dict(violations)
        super().__init__(f"validation failed: {self.violations}")


class RecordNotFoundError(GreenlightError):
    """The referenced record does not exist (or its relation has expired)."""


class InvalidCredentialsError(GreenlightError):
    """Unknown email or wrong password; callers cannot tell which."""


class EditConflictError(GreenlightError):
    """An optimistic-concurrency version check failed."""


class ConstraintViolationError(GreenlightError):
    """A store-level integrity constraint was violated."""

    def __init__(self, message: str, constraint: Optional[str] = None):
        self.constraint = constraint
        super().__init__(message)


class DuplicateEmailError(ConstraintViolationError):
    """A user with this email address already exists."""

    def __init__(self, constraint: Optional[str] = "users_email_key"):
        super().__init__("a user with this email address already exists", constraint)


class MailerError(GreenlightError):
    """An outbound email could not be delivered."""
