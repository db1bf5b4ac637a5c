from pydantic import BaseModel
from typing import Optional, Dict, Any

from querygate.common.errors import ErrorResponse


class SuccessResponse(BaseModel):
    success: bool
    data: Optional[Dict[str, Any]] = None
    message: Optional[str] = None


__all__ = ["ErrorResponse", "SuccessResponse"]
