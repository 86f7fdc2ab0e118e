"""Method records: models, validation and errors"""

from .errors import (
    DuplicateKey,
    FieldError,
    MalformedId,
    MethodStoreError,
    NotFound,
    Unavailable,
    ValidationFailed,
)
from .models import Category, Example, Method, MethodDraft, Parameter, new_method_id
from .validator import merge_payload, parse_method_id, validate_method

__all__ = [
    "Category",
    "DuplicateKey",
    "Example",
    "FieldError",
    "MalformedId",
    "Method",
    "MethodDraft",
    "MethodStoreError",
    "NotFound",
    "Parameter",
    "Unavailable",
    "ValidationFailed",
    "merge_payload",
    "new_method_id",
    "parse_method_id",
    "validate_method",
]
