"""Exception classes for Method catalog operations

The hierarchy is closed: every failure the gateway reports is one of the
subclasses below, and the HTTP layer maps each of them to a status code.
"""

from dataclasses import dataclass
from typing import List, Sequence


@dataclass(frozen=True)
class FieldError:
    """One violated rule on one field"""
    field: str
    rule: str  # required | enum | type
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "rule": self.rule, "message": self.message}


class MethodStoreError(Exception):
    """Base exception for all Method catalog errors"""
    pass


class ValidationFailed(MethodStoreError):
    """Raised when a payload (or a merged update) violates the Method schema"""

    def __init__(self, errors: Sequence[FieldError]):
        self.errors: List[FieldError] = list(errors)
        summary = "; ".join(e.message for e in self.errors) or "invalid payload"
        super().__init__(f"Validation failed: {summary}")

    @property
    def fields(self) -> List[str]:
        return [e.field for e in self.errors]


class DuplicateKey(MethodStoreError):
    """Raised when a write would break name uniqueness"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"A method with this name already exists: {name}")


class NotFound(MethodStoreError):
    """Raised when no Method exists at the given identifier"""

    def __init__(self, method_id: str):
        self.method_id = method_id
        super().__init__(f"Method not found: {method_id}")


class MalformedId(MethodStoreError):
    """Raised when an identifier is not a well-formed ULID"""

    def __init__(self, method_id: str):
        self.method_id = method_id
        super().__init__(f"Invalid method id: {method_id!r}")


class Unavailable(MethodStoreError):
    """Raised when the underlying store cannot be reached"""
    pass
