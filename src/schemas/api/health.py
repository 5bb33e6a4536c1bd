from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field


class ServiceStatus(BaseModel):
    status: Literal["healthy", "unhealthy"]
    message: Optional[str] = None


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"] = Field(..., description="Overall health")
    version: str
    services: Dict[str, ServiceStatus] = Field(default_factory=dict)
