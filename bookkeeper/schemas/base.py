"""
Schemas Pydantic de base pour Bookkeeper API
Responses standards et lectures tolerantes
"""
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from bookkeeper.core.result import ReadResult

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Schema de base avec configuration commune"""

    model_config = ConfigDict(
        from_attributes=True,  # Permet la conversion depuis ORM et dataclasses
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="forbid",  # Rejeter les champs inconnus (securite)
    )


class TimestampSchema(BaseSchema):
    """Schema avec timestamps"""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReadResponse(BaseSchema, Generic[T]):
    """
    Liste issue d'une lecture tolerante.

    status vaut "degraded" si la lecture a echoue: data est alors vide
    et ne doit pas etre interpretee comme un livre vide.
    """
    status: str = "ok"
    error_kind: Optional[str] = None
    data: List[T] = []

    @classmethod
    def from_result(cls, result: ReadResult, items: List[T]) -> "ReadResponse[T]":
        return cls(status=result.status.value, error_kind=result.error_kind, data=items)


class HealthResponse(BaseSchema):
    """Response du health check"""
    status: str = "healthy"
    environment: str
    version: str = "0.1.0"
    database: Optional[str] = None
