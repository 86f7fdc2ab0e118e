"""
Method payload validation

validate_method() is a pure function of (existing record, payload). On create
the payload must be a full record. On update the payload is merged over the
stored record first and the merged result is validated as a full record, so
a partial update can never leave a Method missing a required field or with a
category outside the enum.

Rules:
- required: name, category, description must be non-empty strings
- enum: category must be one of Category.values()
- type: strings must be UTF-8 encodable strings, collections must be lists of
  objects
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from methoddocs.core.methods.errors import FieldError, MalformedId, ValidationFailed
from methoddocs.core.methods.models import (
    PAYLOAD_FIELDS,
    Category,
    Example,
    Method,
    MethodDraft,
    Parameter,
)

# Crockford base32; a leading digit above 7 would overflow 128 bits
_ULID_RE = re.compile(r"^[0-7][0-9A-HJKMNP-TV-Z]{25}$")

REQUIRED_FIELDS = ("name", "category", "description")
OPTIONAL_STRING_FIELDS = ("syntax", "returnValue")

_Item = TypeVar("_Item", Parameter, Example)


def parse_method_id(raw: str) -> str:
    """
    Normalize a Method identifier

    Args:
        raw: Identifier as received (either letter case)

    Returns:
        Upper-case ULID string

    Raises:
        MalformedId: If raw is not a well-formed ULID
    """
    if not isinstance(raw, str):
        raise MalformedId(str(raw))
    candidate = raw.strip().upper()
    if not _ULID_RE.match(candidate):
        raise MalformedId(raw)
    return candidate


def _is_text(value: Any) -> bool:
    """A str that survives UTF-8 encoding (JSON can smuggle in lone surrogates)"""
    if not isinstance(value, str):
        return False
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def merge_payload(existing: Method, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Shallow merge of known payload keys over a stored record"""
    merged = existing.to_payload()
    for key in PAYLOAD_FIELDS:
        if key in payload:
            merged[key] = payload[key]
    return merged


def validate_method(
    payload: Any,
    existing: Optional[Method] = None,
) -> MethodDraft:
    """
    Validate a Method payload

    Args:
        payload: Untyped key-value payload (decoded JSON body)
        existing: Stored record for updates; None for creates

    Returns:
        Normalized MethodDraft (unknown and system keys dropped)

    Raises:
        ValidationFailed: With every violated rule
    """
    if not isinstance(payload, Mapping):
        raise ValidationFailed([
            FieldError("body", "type", "body must be a JSON object")
        ])

    data = merge_payload(existing, payload) if existing is not None else dict(payload)
    errors: List[FieldError] = []

    for key in REQUIRED_FIELDS:
        value = data.get(key)
        if value is None or value == "":
            errors.append(FieldError(key, "required", f"{key} is required"))
        elif not _is_text(value):
            errors.append(FieldError(key, "type", f"{key} must be a string"))

    category = data.get("category")
    if _is_text(category) and category and category not in Category.values():
        errors.append(FieldError(
            "category",
            "enum",
            f"category must be one of {', '.join(Category.values())} (got {category!r})",
        ))

    for key in OPTIONAL_STRING_FIELDS:
        value = data.get(key)
        if value is not None and not _is_text(value):
            errors.append(FieldError(key, "type", f"{key} must be a string or null"))

    parameters, param_errors = _validate_items(
        data.get("parameters"), "parameters", Parameter, ("name", "description")
    )
    examples, example_errors = _validate_items(
        data.get("examples"), "examples", Example, ("code", "output")
    )
    errors.extend(param_errors)
    errors.extend(example_errors)

    if errors:
        raise ValidationFailed(errors)

    return MethodDraft(
        name=data["name"],
        category=Category(data["category"]),
        description=data["description"],
        syntax=data.get("syntax"),
        return_value=data.get("returnValue"),
        parameters=parameters,
        examples=examples,
    )


def _validate_items(
    value: Any,
    field_name: str,
    item_type: Type[_Item],
    keys: Tuple[str, ...],
) -> Tuple[List[_Item], List[FieldError]]:
    """Validate an ordered list of sub-documents; order is preserved"""
    if value is None:
        return [], []
    if not isinstance(value, list):
        return [], [FieldError(field_name, "type", f"{field_name} must be a list")]

    items: List[_Item] = []
    errors: List[FieldError] = []
    for index, raw in enumerate(value):
        path = f"{field_name}[{index}]"
        if not isinstance(raw, Mapping):
            errors.append(FieldError(path, "type", f"{path} must be an object"))
            continue

        fields: Dict[str, str] = {}
        for key in keys:
            sub = raw.get(key)
            if sub is None:
                fields[key] = ""
            elif _is_text(sub):
                fields[key] = sub
            else:
                errors.append(FieldError(f"{path}.{key}", "type", f"{path}.{key} must be a string"))
        items.append(item_type(**fields))

    return items, errors
