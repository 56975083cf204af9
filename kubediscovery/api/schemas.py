"""Pydantic response models for the REST API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CompositionNodeModel(BaseModel):
    """JSON shape of one composition tree node."""

    level: int
    kind: str
    name: str
    namespace: str
    status: str = ""
    children: list[CompositionNodeModel] = Field(default_factory=list)


CompositionNodeModel.model_rebuild()


class HealthResponse(BaseModel):
    status: str = "ok"
    records: int = 0
    kinds: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error envelope returned for every non-2xx response."""

    error: str
    detail: str
