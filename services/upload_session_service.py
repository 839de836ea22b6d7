"""
Upload session state machine.

    Idle --start_upload--> AwaitingSiteName --name--> AwaitingFiles --finalize--> Deploying --> Idle
    Idle --admin action--> AdminAwaitingSlug --slug--> Idle

``transition`` is pure: it maps (session, event) to (next session, effect) and
never touches the network or a store. Whoever executes a ``Deploy`` or
``RunAdminAction`` effect is responsible for the I/O.

Archive mode finalizes on its first staged file. MultiFile mode keeps
staging until an explicit ``Finalize``.
"""

from typing import Callable, Dict, NamedTuple, Optional, Type

from config import MAX_FILE_BYTES
from models.errors import ErrorCode
from models.session_models import (
    AdminAwaitingSlug,
    AwaitingFiles,
    AwaitingSiteName,
    Cancel,
    Cancelled,
    Deploy,
    Effect,
    Event,
    FileStaged,
    Finalize,
    Ignored,
    PromptFiles,
    PromptSiteName,
    PromptSlug,
    Rejected,
    RunAdminAction,
    Session,
    StagedFile,
    StartAdminAction,
    StartUpload,
    SubmitFile,
    SubmitText,
    UploadMode,
)

# Text starting with this belongs to the router, not to the name prompt
COMMAND_PREFIX = "/"


class Transition(NamedTuple):
    session: Optional[Session]
    effect: Effect


def is_oversized(size: Optional[int], limit: int = MAX_FILE_BYTES) -> bool:
    return size is not None and size > limit


def _start_upload(session, event: StartUpload, is_admin: bool, max_file_bytes: int) -> Transition:
    # Overwrites any pending session, staged files included
    return Transition(
        AwaitingSiteName(upload_mode=event.mode),
        PromptSiteName(upload_mode=event.mode),
    )


def _start_admin_action(session, event: StartAdminAction, is_admin: bool, max_file_bytes: int) -> Transition:
    if not is_admin:
        return Transition(session, Rejected(code=ErrorCode.ACCESS_DENIED))
    return Transition(
        AdminAwaitingSlug(pending_action=event.action),
        PromptSlug(action=event.action),
    )


def _submit_text(session, event: SubmitText, is_admin: bool, max_file_bytes: int) -> Transition:
    text = event.text.strip()

    if isinstance(session, AwaitingSiteName):
        if text.startswith(COMMAND_PREFIX):
            return Transition(session, Ignored())
        if not text:
            return Transition(session, Rejected(code=ErrorCode.EMPTY_SITE_NAME))
        return Transition(
            AwaitingFiles(upload_mode=session.upload_mode, site_name=text),
            PromptFiles(upload_mode=session.upload_mode, site_name=text),
        )

    if isinstance(session, AdminAwaitingSlug):
        if not is_admin:
            return Transition(session, Rejected(code=ErrorCode.ACCESS_DENIED))
        if not text:
            return Transition(session, Rejected(code=ErrorCode.EMPTY_SLUG))
        return Transition(None, RunAdminAction(action=session.pending_action, slug=text))

    # Free text outside a prompt is not ours to handle
    return Transition(session, Ignored())


def _submit_file(session, event: SubmitFile, is_admin: bool, max_file_bytes: int) -> Transition:
    if not isinstance(session, AwaitingFiles):
        return Transition(session, Rejected(code=ErrorCode.NO_ACTIVE_SESSION))

    if is_oversized(len(event.content), max_file_bytes):
        return Transition(
            session,
            Rejected(code=ErrorCode.FILE_TOO_LARGE, detail=event.file_name),
        )

    staged = session.model_copy(update={
        "staged_files": session.staged_files + (StagedFile(file_name=event.file_name, content=event.content),),
    })

    if staged.upload_mode == UploadMode.ARCHIVE:
        return _finalize(staged, Finalize(), is_admin, max_file_bytes)

    return Transition(
        staged,
        FileStaged(
            file_name=event.file_name,
            size=len(event.content),
            staged_count=len(staged.staged_files),
        ),
    )


def _finalize(session, event: Finalize, is_admin: bool, max_file_bytes: int) -> Transition:
    if not isinstance(session, AwaitingFiles) or not session.staged_files:
        return Transition(session, Rejected(code=ErrorCode.NOTHING_STAGED))
    # Session ends here whatever the deploy outcome turns out to be
    return Transition(None, Deploy(site_name=session.site_name, files=session.staged_files))


def _cancel(session, event: Cancel, is_admin: bool, max_file_bytes: int) -> Transition:
    return Transition(None, Cancelled())


_TRANSITIONS: Dict[Type, Callable[..., Transition]] = {
    StartUpload: _start_upload,
    StartAdminAction: _start_admin_action,
    SubmitText: _submit_text,
    SubmitFile: _submit_file,
    Finalize: _finalize,
    Cancel: _cancel,
}


def transition(
    session: Optional[Session],
    event: Event,
    *,
    is_admin: bool = False,
    max_file_bytes: int = MAX_FILE_BYTES,
) -> Transition:
    handler = _TRANSITIONS.get(type(event))
    if handler is None:
        raise TypeError(f"Unsupported upload event: {type(event).__name__}")
    return handler(session, event, is_admin, max_file_bytes)
