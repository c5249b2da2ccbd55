"""
CYOA Stats — Pydantic request/response schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class LogRow(BaseModel):
    id: int
    project_id: str
    uid: str
    event_type: str
    current_url: str
    referrer: str | None = None
    time_on_page: int = 0
    event_timestamp: str
    data: str
    data_hash: str
    created_at: datetime | str | None = None
    log_type: str = "log"

    model_config = {"from_attributes": True}


class LogListResponse(BaseModel):
    results: list[LogRow]
    total: int


class TotalTimeResponse(BaseModel):
    adjusted_total_time: int = Field(..., alias="adjustedTotalTime")

    model_config = {"populate_by_name": True}


class VisitorCountResponse(BaseModel):
    visitor_count: int = Field(..., alias="visitorCount")

    model_config = {"populate_by_name": True}


class ProjectCountResponse(BaseModel):
    project_count: int = Field(..., alias="projectCount")

    model_config = {"populate_by_name": True}


class BuildCountResponse(BaseModel):
    build_count: int = Field(..., alias="buildCount")

    model_config = {"populate_by_name": True}


class RegistrationResponse(BaseModel):
    project_id: str
    secret_key: str
    email: str | None = None
    email_sent: bool = False


class ProjectSummary(BaseModel):
    project_id: str
    created_at: datetime | str | None = None
    sample_url: str | None = None


class ProjectListResponse(BaseModel):
    projects: list[ProjectSummary]
    total: int


class CorrelationItem(BaseModel):
    id_a: str
    id_b: str
    count: int
    percent: float
    prob_a: float
    prob_b: float
    lift: float


class CorrelationResponse(BaseModel):
    project_id: str
    sort: str
    sessions: int
    correlations: list[CorrelationItem]


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "1.0.0"
    timestamp: str | None = None
