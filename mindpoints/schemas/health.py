from typing import Optional
from pydantic import BaseModel, Field


class HealthCheckResponse(BaseModel):
    """서비스 및 원장 저장소 상태"""

    status: str = Field("healthy", description="healthy 또는 degraded")
    database: str = Field("ok", description="저장소 연결 상태")
    error: Optional[str] = None
