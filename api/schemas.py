from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class SuccessEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: bool = True
    data: List[Dict[str, Any]]
    count: int


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    warehouse: bool
    endpoints: int
