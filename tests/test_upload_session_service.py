"""
Transition table tests. No I/O: every case feeds a session and an event to
``transition`` and checks the next session and the effect.
"""
import pytest

from models.errors import ErrorCode
from models.session_models import (
    AdminAction,
    AdminAwaitingSlug,
    AwaitingFiles,
    AwaitingSiteName,
    Cancel,
    Cancelled,
    Deploy,
    FileStaged,
    Finalize,
    Ignored,
    PromptFiles,
    PromptSiteName,
    PromptSlug,
    Rejected,
    RunAdminAction,
    SessionState,
    StagedFile,
    StartAdminAction,
    StartUpload,
    SubmitFile,
    SubmitText,
    UploadMode,
    state_of,
)
from services.upload_session_service import is_oversized, transition

LIMIT = 1000


def awaiting_files(mode=UploadMode.MULTI_FILE, files=()):
    return AwaitingFiles(upload_mode=mode, site_name="My Portfolio", staged_files=tuple(files))


def staged(name, size=10):
    return StagedFile(file_name=name, content=b"x" * size)


class TestStartUpload:
    def test_from_idle_prompts_for_name(self):
        step = transition(None, StartUpload(mode=UploadMode.ARCHIVE))
        assert step.session == AwaitingSiteName(upload_mode=UploadMode.ARCHIVE)
        assert step.effect == PromptSiteName(upload_mode=UploadMode.ARCHIVE)

    def test_restart_discards_staged_files(self):
        session = awaiting_files(files=[staged("a.html"), staged("b.css")])
        step = transition(session, StartUpload(mode=UploadMode.MULTI_FILE))
        assert state_of(step.session) == SessionState.AWAITING_SITE_NAME
        assert not hasattr(step.session, "staged_files")

    def test_overwrites_admin_prompt(self):
        session = AdminAwaitingSlug(pending_action=AdminAction.DELETE)
        step = transition(session, StartUpload(mode=UploadMode.ARCHIVE), is_admin=True)
        assert state_of(step.session) == SessionState.AWAITING_SITE_NAME


class TestSubmitName:
    def test_name_moves_to_awaiting_files(self):
        session = AwaitingSiteName(upload_mode=UploadMode.MULTI_FILE)
        step = transition(session, SubmitText(text="  My Portfolio  "))
        assert step.session == AwaitingFiles(upload_mode=UploadMode.MULTI_FILE, site_name="My Portfolio")
        assert step.effect == PromptFiles(upload_mode=UploadMode.MULTI_FILE, site_name="My Portfolio")

    def test_command_text_is_not_a_name(self):
        session = AwaitingSiteName(upload_mode=UploadMode.ARCHIVE)
        step = transition(session, SubmitText(text="/start"))
        assert step.session is session
        assert isinstance(step.effect, Ignored)

    def test_blank_name_is_rejected(self):
        session = AwaitingSiteName(upload_mode=UploadMode.ARCHIVE)
        step = transition(session, SubmitText(text="   "))
        assert step.session is session
        assert step.effect == Rejected(code=ErrorCode.EMPTY_SITE_NAME)

    def test_text_while_idle_is_ignored(self):
        step = transition(None, SubmitText(text="hello"))
        assert step.session is None
        assert isinstance(step.effect, Ignored)

    def test_text_while_awaiting_files_is_ignored(self):
        session = awaiting_files(files=[staged("a.html")])
        step = transition(session, SubmitText(text="another name"))
        assert step.session is session
        assert isinstance(step.effect, Ignored)


class TestSubmitFile:
    def test_multi_file_stages_in_order(self):
        session = awaiting_files()
        for i, name in enumerate(["index.html", "style.css", "app.js"], start=1):
            step = transition(session, SubmitFile(file_name=name, content=b"abc"), max_file_bytes=LIMIT)
            session = step.session
            assert step.effect == FileStaged(file_name=name, size=3, staged_count=i)

        assert [f.file_name for f in session.staged_files] == ["index.html", "style.css", "app.js"]
        assert state_of(session) == SessionState.AWAITING_FILES

    def test_oversized_file_changes_nothing(self):
        session = awaiting_files(files=[staged("index.html")])
        step = transition(
            session,
            SubmitFile(file_name="huge.png", content=b"x" * (LIMIT + 1)),
            max_file_bytes=LIMIT,
        )
        assert step.session is session
        assert len(step.session.staged_files) == 1
        assert step.effect.code == ErrorCode.FILE_TOO_LARGE

    def test_file_at_exact_limit_is_accepted(self):
        step = transition(
            awaiting_files(),
            SubmitFile(file_name="edge.bin", content=b"x" * LIMIT),
            max_file_bytes=LIMIT,
        )
        assert isinstance(step.effect, FileStaged)

    def test_archive_single_file_finalizes(self):
        session = awaiting_files(mode=UploadMode.ARCHIVE)
        step = transition(session, SubmitFile(file_name="site.zip", content=b"PK"), max_file_bytes=LIMIT)
        assert step.session is None
        assert isinstance(step.effect, Deploy)
        assert step.effect.site_name == "My Portfolio"
        assert [f.file_name for f in step.effect.files] == ["site.zip"]

    def test_second_archive_after_reset_has_no_session(self):
        session = awaiting_files(mode=UploadMode.ARCHIVE)
        first = transition(session, SubmitFile(file_name="site.zip", content=b"PK"))
        second = transition(first.session, SubmitFile(file_name="again.zip", content=b"PK"))
        assert second.session is None
        assert second.effect == Rejected(code=ErrorCode.NO_ACTIVE_SESSION)

    @pytest.mark.parametrize("session", [None, AwaitingSiteName(upload_mode=UploadMode.MULTI_FILE)])
    def test_file_outside_awaiting_files_is_rejected(self, session):
        step = transition(session, SubmitFile(file_name="a.html", content=b"a"))
        assert step.session is session
        assert step.effect.code == ErrorCode.NO_ACTIVE_SESSION


class TestFinalize:
    def test_finalize_hands_over_all_files(self):
        files = [staged("index.html"), staged("style.css"), staged("app.js")]
        step = transition(awaiting_files(files=files), Finalize())
        assert step.session is None
        assert step.effect == Deploy(site_name="My Portfolio", files=tuple(files))
        assert step.effect.file_count == 3

    def test_finalize_with_nothing_staged(self):
        session = awaiting_files()
        step = transition(session, Finalize())
        assert step.session is session
        assert state_of(step.session) == SessionState.AWAITING_FILES
        assert step.effect == Rejected(code=ErrorCode.NOTHING_STAGED)

    @pytest.mark.parametrize("session", [None, AwaitingSiteName(upload_mode=UploadMode.MULTI_FILE)])
    def test_finalize_without_files_state(self, session):
        step = transition(session, Finalize())
        assert step.session is session
        assert step.effect.code == ErrorCode.NOTHING_STAGED


class TestCancel:
    @pytest.mark.parametrize("session", [
        None,
        AwaitingSiteName(upload_mode=UploadMode.ARCHIVE),
        AwaitingFiles(upload_mode=UploadMode.MULTI_FILE, site_name="x", staged_files=(StagedFile(file_name="a", content=b"a"),)),
        AdminAwaitingSlug(pending_action=AdminAction.RESTORE),
    ])
    def test_cancel_always_returns_to_idle(self, session):
        step = transition(session, Cancel())
        assert step.session is None
        assert state_of(step.session) == SessionState.IDLE
        assert isinstance(step.effect, Cancelled)


class TestAdminFlow:
    def test_admin_enters_slug_prompt(self):
        step = transition(None, StartAdminAction(action=AdminAction.DELETE), is_admin=True)
        assert state_of(step.session) == SessionState.ADMIN_AWAITING_SLUG_FOR_DELETE
        assert step.effect == PromptSlug(action=AdminAction.DELETE)

    def test_non_admin_is_denied_without_state_change(self):
        session = awaiting_files(files=[staged("a.html")])
        step = transition(session, StartAdminAction(action=AdminAction.RESTORE), is_admin=False)
        assert step.session is session
        assert step.effect.code == ErrorCode.ACCESS_DENIED

    def test_slug_runs_action_and_resets(self):
        session = AdminAwaitingSlug(pending_action=AdminAction.RESTORE)
        step = transition(session, SubmitText(text=" my-site-ab12 "), is_admin=True)
        assert step.session is None
        assert step.effect == RunAdminAction(action=AdminAction.RESTORE, slug="my-site-ab12")

    def test_slug_from_non_admin_is_denied(self):
        session = AdminAwaitingSlug(pending_action=AdminAction.DELETE)
        step = transition(session, SubmitText(text="my-site"), is_admin=False)
        assert step.session is session
        assert step.effect.code == ErrorCode.ACCESS_DENIED

    def test_blank_slug_keeps_prompt(self):
        session = AdminAwaitingSlug(pending_action=AdminAction.DELETE)
        step = transition(session, SubmitText(text="  "), is_admin=True)
        assert step.session is session
        assert step.effect.code == ErrorCode.EMPTY_SLUG


def test_is_oversized():
    assert is_oversized(LIMIT + 1, LIMIT)
    assert not is_oversized(LIMIT, LIMIT)
    assert not is_oversized(None, LIMIT)


def test_unknown_event_type():
    with pytest.raises(TypeError):
        transition(None, object())
