# app/schemas/common/common.py
from pydantic import BaseModel
from typing import Any, Dict, Optional

class ErrorResponse(BaseModel):
    success: bool = False
    data: Optional[Dict[str, Any]] = None
    error: str
    code: Optional[str] = None

class HealthResponse(BaseModel):
    ok: bool
    service: str
    database: bool = True
    database_error: Optional[str] = None
