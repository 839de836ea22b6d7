"""
Per-conversation upload session: one model per state, the events that drive it
and the effects a transition hands back to the caller.

The "no session" ground state is represented by ``None``; ``Deploying`` is
never stored, it only exists while a ``Deploy`` effect is being executed.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field

from models.errors import ErrorCode


class UploadMode(str, Enum):
    ARCHIVE = "zip"
    MULTI_FILE = "multiple"


class AdminAction(str, Enum):
    DELETE = "delete"
    RESTORE = "restore"


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_SITE_NAME = "awaiting_site_name"
    AWAITING_FILES = "awaiting_files"
    DEPLOYING = "deploying"
    ADMIN_AWAITING_SLUG_FOR_DELETE = "admin_awaiting_slug_for_delete"
    ADMIN_AWAITING_SLUG_FOR_RESTORE = "admin_awaiting_slug_for_restore"


class StagedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_name: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


# ---------------- Session variants ----------------

class AwaitingSiteName(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: Literal["awaiting_site_name"] = "awaiting_site_name"
    upload_mode: UploadMode


class AwaitingFiles(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: Literal["awaiting_files"] = "awaiting_files"
    upload_mode: UploadMode
    site_name: str = Field(..., min_length=1)
    staged_files: Tuple[StagedFile, ...] = ()

    @property
    def total_bytes(self) -> int:
        return sum(f.size for f in self.staged_files)


class AdminAwaitingSlug(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: Literal["admin_awaiting_slug"] = "admin_awaiting_slug"
    pending_action: AdminAction


Session = Annotated[
    Union[AwaitingSiteName, AwaitingFiles, AdminAwaitingSlug],
    Field(discriminator="state"),
]


def state_of(session: Optional[Session]) -> SessionState:
    if session is None:
        return SessionState.IDLE
    if isinstance(session, AwaitingSiteName):
        return SessionState.AWAITING_SITE_NAME
    if isinstance(session, AwaitingFiles):
        return SessionState.AWAITING_FILES
    if session.pending_action == AdminAction.DELETE:
        return SessionState.ADMIN_AWAITING_SLUG_FOR_DELETE
    return SessionState.ADMIN_AWAITING_SLUG_FOR_RESTORE


# ---------------- Events ----------------

class StartUpload(BaseModel):
    kind: Literal["start_upload"] = "start_upload"
    mode: UploadMode


class SubmitText(BaseModel):
    kind: Literal["submit_text"] = "submit_text"
    text: str


class SubmitFile(BaseModel):
    kind: Literal["submit_file"] = "submit_file"
    file_name: str
    content: bytes


class Finalize(BaseModel):
    kind: Literal["finalize"] = "finalize"


class Cancel(BaseModel):
    kind: Literal["cancel"] = "cancel"


class StartAdminAction(BaseModel):
    kind: Literal["start_admin_action"] = "start_admin_action"
    action: AdminAction


Event = Annotated[
    Union[StartUpload, SubmitText, SubmitFile, Finalize, Cancel, StartAdminAction],
    Field(discriminator="kind"),
]


# ---------------- Effects ----------------

class PromptSiteName(BaseModel):
    kind: Literal["prompt_site_name"] = "prompt_site_name"
    upload_mode: UploadMode


class PromptFiles(BaseModel):
    kind: Literal["prompt_files"] = "prompt_files"
    upload_mode: UploadMode
    site_name: str


class FileStaged(BaseModel):
    kind: Literal["file_staged"] = "file_staged"
    file_name: str
    size: int
    staged_count: int


class Deploy(BaseModel):
    kind: Literal["deploy"] = "deploy"
    site_name: str
    files: Tuple[StagedFile, ...]

    @property
    def file_count(self) -> int:
        return len(self.files)


class PromptSlug(BaseModel):
    kind: Literal["prompt_slug"] = "prompt_slug"
    action: AdminAction


class RunAdminAction(BaseModel):
    kind: Literal["run_admin_action"] = "run_admin_action"
    action: AdminAction
    slug: str


class Cancelled(BaseModel):
    kind: Literal["cancelled"] = "cancelled"


class Ignored(BaseModel):
    kind: Literal["ignored"] = "ignored"


class Rejected(BaseModel):
    kind: Literal["rejected"] = "rejected"
    code: ErrorCode
    detail: Optional[str] = None


Effect = Union[
    PromptSiteName,
    PromptFiles,
    FileStaged,
    Deploy,
    PromptSlug,
    RunAdminAction,
    Cancelled,
    Ignored,
    Rejected,
]
