"""
Methods API - JavaScript method documentation records

GET /api/methods - List methods (ordered by category, then name)
GET /api/methods/{id} - Get method details
POST /api/methods - Create method
PUT /api/methods/{id} - Update method (partial or full)
DELETE /api/methods/{id} - Delete method

Gateway failures propagate as MethodStoreError and are turned into
responses by the handlers in error_envelope.
"""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Request, status
from pydantic import BaseModel

from methoddocs.core.methods.models import Method
from methoddocs.store import MethodStore

logger = logging.getLogger(__name__)

router = APIRouter()


# Pydantic models

class ParameterModel(BaseModel):
    """Documented method parameter"""
    name: str
    description: str


class ExampleModel(BaseModel):
    """Usage example"""
    code: str
    output: str


class MethodDetail(BaseModel):
    """Method detail model"""
    id: str
    name: str
    category: str
    description: str
    syntax: Optional[str] = None
    returnValue: Optional[str] = None
    parameters: List[ParameterModel] = []
    examples: List[ExampleModel] = []
    createdAt: str
    updatedAt: str

    @classmethod
    def from_method(cls, method: Method) -> "MethodDetail":
        return cls(**method.to_dict())


class DeleteResponse(BaseModel):
    """Delete confirmation"""
    message: str
    id: str


def get_store(request: Request) -> MethodStore:
    """The gateway opened by the application lifespan"""
    return request.app.state.store


# API endpoints

@router.get("")
def list_methods(store: MethodStore = Depends(get_store)) -> List[MethodDetail]:
    """
    List all methods

    Returns:
        Methods sorted by category, then name
    """
    return [MethodDetail.from_method(m) for m in store.get_all()]


@router.get("/{method_id}")
def get_method(method_id: str, store: MethodStore = Depends(get_store)) -> MethodDetail:
    """
    Get method details by ID

    Args:
        method_id: Method ID (ULID)

    Returns:
        Method details
    """
    return MethodDetail.from_method(store.get_by_id(method_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_method(
    payload: Any = Body(...),
    store: MethodStore = Depends(get_store),
) -> MethodDetail:
    """
    Create a new method

    Args:
        payload: Method fields (id and timestamps are ignored)

    Returns:
        Created method
    """
    method = store.create(payload)
    return MethodDetail.from_method(method)


@router.put("/{method_id}")
def update_method(
    method_id: str,
    payload: Any = Body(...),
    store: MethodStore = Depends(get_store),
) -> MethodDetail:
    """
    Update a method

    The payload is merged over the stored record and the result is
    validated as a whole, so any subset of fields may be sent.

    Args:
        method_id: Method ID (ULID)
        payload: Fields to change

    Returns:
        Updated method
    """
    method = store.update(method_id, payload)
    return MethodDetail.from_method(method)


@router.delete("/{method_id}")
def delete_method(method_id: str, store: MethodStore = Depends(get_store)) -> DeleteResponse:
    """Delete a method"""
    method = store.delete(method_id)
    return DeleteResponse(message="Method deleted successfully", id=method.id)
