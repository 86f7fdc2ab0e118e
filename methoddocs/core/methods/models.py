"""
Method catalog data models

Method is the only persisted entity. MethodDraft holds the user-controlled
fields after validation; Method adds the system-managed identity and
timestamps.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ulid import ULID

from methoddocs.core.time import iso_z


class Category(str, Enum):
    """Fixed set of method categories"""
    ARRAY = "Array"
    STRING = "String"
    OBJECT = "Object"
    NUMBER = "Number"
    OTHER = "Other"

    @classmethod
    def values(cls) -> List[str]:
        return [c.value for c in cls]


@dataclass(frozen=True)
class Parameter:
    """A documented parameter of a method"""
    name: str = ""
    description: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "description": self.description}


@dataclass(frozen=True)
class Example:
    """A usage example and its expected output"""
    code: str = ""
    output: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "output": self.output}


# Wire keys the user controls, in serialization order
PAYLOAD_FIELDS = (
    "name",
    "category",
    "description",
    "syntax",
    "returnValue",
    "parameters",
    "examples",
)

# Wire keys managed by the system; ignored when they appear in a payload
SYSTEM_FIELDS = ("id", "_id", "createdAt", "updatedAt")


@dataclass
class MethodDraft:
    """Validated user fields of a Method, before identity is assigned"""
    name: str
    category: Category
    description: str
    syntax: Optional[str] = None
    return_value: Optional[str] = None
    parameters: List[Parameter] = field(default_factory=list)
    examples: List[Example] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize user fields with wire keys"""
        return {
            "name": self.name,
            "category": self.category.value,
            "description": self.description,
            "syntax": self.syntax,
            "returnValue": self.return_value,
            "parameters": [p.to_dict() for p in self.parameters],
            "examples": [e.to_dict() for e in self.examples],
        }


@dataclass
class Method:
    """A stored Method record"""
    id: str
    name: str
    category: Category
    description: str
    created_at: datetime
    updated_at: datetime
    syntax: Optional[str] = None
    return_value: Optional[str] = None
    parameters: List[Parameter] = field(default_factory=list)
    examples: List[Example] = field(default_factory=list)

    @classmethod
    def from_draft(
        cls,
        method_id: str,
        draft: MethodDraft,
        created_at: datetime,
        updated_at: datetime,
    ) -> "Method":
        return cls(
            id=method_id,
            name=draft.name,
            category=draft.category,
            description=draft.description,
            created_at=created_at,
            updated_at=updated_at,
            syntax=draft.syntax,
            return_value=draft.return_value,
            parameters=list(draft.parameters),
            examples=list(draft.examples),
        )

    def to_draft(self) -> MethodDraft:
        return MethodDraft(
            name=self.name,
            category=self.category,
            description=self.description,
            syntax=self.syntax,
            return_value=self.return_value,
            parameters=list(self.parameters),
            examples=list(self.examples),
        )

    def to_payload(self) -> Dict[str, Any]:
        """User fields only; the base an update payload is merged onto"""
        return self.to_draft().to_payload()

    def to_dict(self) -> Dict[str, Any]:
        """Full wire representation"""
        data: Dict[str, Any] = {"id": self.id}
        data.update(self.to_payload())
        data["createdAt"] = iso_z(self.created_at)
        data["updatedAt"] = iso_z(self.updated_at)
        return data


def new_method_id() -> str:
    """Generate a fresh Method identifier (ULID, upper case)"""
    return str(ULID())
