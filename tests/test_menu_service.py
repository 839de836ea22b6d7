from datetime import datetime, timezone

from models.common_models import (
    AdminActionOutcome,
    AdminSiteListing,
    DeployOutcome,
    DeploymentRecord,
    UsageSummary,
)
from models.errors import ErrorCode
from models.session_models import AdminAction, UploadMode
from services import menu_service


def record(i, name=None):
    return DeploymentRecord(
        user_id=42,
        name=name or f"Site {i}",
        slug=f"site-{i}",
        url=f"https://sites.example/site-{i}",
        files_count=i,
        uploaded_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )


def callback_data(markup):
    return [b.callback_data for row in markup.inline_keyboard for b in row if b.callback_data]


def test_admin_button_only_for_admins():
    assert "admin_panel" in callback_data(menu_service.main_menu(is_admin=True))
    assert "admin_panel" not in callback_data(menu_service.main_menu(is_admin=False))


def test_files_prompt_depends_on_mode():
    _, archive_markup = menu_service.files_prompt_view(UploadMode.ARCHIVE, "Blog")
    _, multi_markup = menu_service.files_prompt_view(UploadMode.MULTI_FILE, "Blog")
    assert "finish_upload" not in callback_data(archive_markup)
    assert "finish_upload" in callback_data(multi_markup)


def test_site_name_is_escaped():
    text, _ = menu_service.files_prompt_view(UploadMode.ARCHIVE, "<script>")
    assert "&lt;script&gt;" in text


def test_deploy_success_has_view_button():
    outcome = DeployOutcome(ok=True, site_name="Site 1", file_count=1, record=record(1))
    text, markup = menu_service.deploy_outcome_view(outcome, is_admin=False)
    assert "Deployment Successful" in text
    assert markup.inline_keyboard[0][0].url == "https://sites.example/site-1"


def test_deploy_rejection_shows_remote_message():
    outcome = DeployOutcome(
        ok=False, site_name="x", file_count=1, error_code=ErrorCode.DEPLOY_REJECTED, error="Name taken"
    )
    text, _ = menu_service.deploy_outcome_view(outcome, is_admin=False)
    assert text == "❌ Deployment failed: Name taken"


def test_my_sites_limits_buttons():
    records = [record(i) for i in range(1, 8)]
    text, markup = menu_service.my_sites_view(records, is_admin=False)

    url_buttons = [b for row in markup.inline_keyboard for b in row if b.url]
    assert len(url_buttons) == menu_service.MY_SITES_BUTTON_LIMIT
    assert "Total: 7" in text
    assert "Site 5</b>" in text
    assert "Site 6</b>" not in text


def test_my_sites_text_stays_under_telegram_limit():
    records = [record(i, name="x" * 200) for i in range(1, 60)]
    text, _ = menu_service.my_sites_view(records, is_admin=False)
    assert len(text) < 4096


def test_my_sites_empty():
    text, _ = menu_service.my_sites_view([], is_admin=False)
    assert "haven't uploaded any sites" in text


def test_admin_list_truncates():
    listing = AdminSiteListing(records=[record(i) for i in range(1, 13)], remote_count=15)
    text, _ = menu_service.admin_sites_view(listing)
    assert "...and 2 more" in text
    assert "Site 11" not in text
    assert "<b>15</b>" in text


def test_stats_without_storage():
    text, _ = menu_service.stats_view(UsageSummary(total_sites=3), is_admin=False)
    assert "<b>3</b>" in text
    assert "N/A" in text


def test_admin_outcome_not_found():
    text, _ = menu_service.admin_outcome_view(
        AdminActionOutcome(action=AdminAction.DELETE, slug="ghost", found=False)
    )
    assert "not found" in text


def test_unknown_rejection_falls_back():
    assert menu_service.rejection_text(ErrorCode.DUPLICATE_SLUG) == "❌ An error occurred. Please try again later."
    assert "50MB" in menu_service.rejection_text(ErrorCode.FILE_TOO_LARGE)
