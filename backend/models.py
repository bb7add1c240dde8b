"""
Pydantic models used across the receiver.

Request bodies are open-ended JSON objects and stay plain dicts (see
`Record` in `repo_records`); only the response envelopes have a fixed
shape and belong here. Field names follow the wire contract (camelCase
where clients expect it, e.g. `dataCount`).
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List


class HealthResponse(BaseModel):
    status: str = "OK"
    server: str
    timestamp: str


class IngestResponse(BaseModel):
    """Acknowledgement returned after a record has been persisted.

    Fields:
    - `dataCount`: size of the collection after the append.
    - `timestamp`: server time of the acknowledgement.
    """

    success: bool = True
    message: str
    dataCount: int
    timestamp: str


class DataResponse(BaseModel):
    count: int
    data: List[Dict[str, Any]] = Field(default_factory=list)


class ClearResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    error: str
