from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from models.errors import ErrorCode
from models.session_models import AdminAction


class SiteStatus(str, Enum):
    ACTIVE = "active"
    DELETED = "deleted"


# ---------------- Hosting API payloads ----------------

class UploadFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(..., alias="fileName")
    file_data: str = Field(..., alias="fileData")   # base64


class UploadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    site_name: str = Field(..., alias="siteName")
    files: List[UploadFile]


class DeployResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ok: bool = False
    slug: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None


class ActionResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ok: bool = False
    error: Optional[str] = None


class UsageStats(BaseModel):
    """Any field may be missing; the API only promises best effort."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    total_sites: Optional[int] = Field(None, alias="totalSites")
    total_storage_formatted: Optional[str] = Field(None, alias="totalStorageFormatted")


class HealthStatus(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: Optional[str] = None
    uptime: Optional[float] = None


class RemoteSite(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    slug: str
    name: Optional[str] = Field(None, alias="siteName")
    status: Optional[str] = None


# ---------------- Records ----------------

class DeploymentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    name: str
    slug: str
    url: str
    files_count: int = 0
    uploaded_at: datetime
    status: SiteStatus = SiteStatus.ACTIVE


# ---------------- Outcomes handed to the router ----------------

class DeployOutcome(BaseModel):
    ok: bool
    site_name: str
    file_count: int
    record: Optional[DeploymentRecord] = None
    error_code: Optional[ErrorCode] = None
    error: Optional[str] = None


class AdminActionOutcome(BaseModel):
    action: AdminAction
    slug: str
    found: bool
    remote_confirmed: bool = False


class AdminSiteListing(BaseModel):
    records: List[DeploymentRecord]
    remote_count: Optional[int] = None   # None when the hosting API could not be asked


class UsageSummary(BaseModel):
    total_sites: int
    storage: Optional[str] = None   # None renders as "N/A"


class ServerStats(BaseModel):
    total_sites: int
    storage: Optional[str] = None
    database_connected: bool
    uptime_minutes: int
    api_status: Optional[str] = None
