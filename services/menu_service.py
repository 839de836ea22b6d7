"""Keyboards and message texts. All texts are HTML (ParseMode.HTML)."""

from html import escape
from typing import List, Optional, Tuple

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from config import API_URL, MAX_FILE_BYTES
from models.common_models import (
    AdminActionOutcome,
    AdminSiteListing,
    DeployOutcome,
    DeploymentRecord,
    ServerStats,
    UsageSummary,
)
from models.errors import ErrorCode
from models.session_models import AdminAction, UploadMode

View = Tuple[str, Optional[InlineKeyboardMarkup]]

MY_SITES_BUTTON_LIMIT = 5
ADMIN_LIST_LIMIT = 10

SUPPORTED_FORMATS = ".zip, .html, .css, .js, .png, .jpg, .svg, .gif, .webp, .ico"


def btn(text: str, data: str) -> InlineKeyboardButton:
    return InlineKeyboardButton(text, callback_data=data)


def _date(record: DeploymentRecord) -> str:
    return record.uploaded_at.strftime("%Y-%m-%d")


def _mb(n: int) -> int:
    return n // (1024 * 1024)


# ---------------- keyboards ----------------

def main_menu(is_admin: bool = False) -> InlineKeyboardMarkup:
    rows = [
        [btn("🚀 Upload New Site", "upload")],
        [btn("📋 My Sites", "my_sites")],
        [btn("📊 View Statistics", "stats")],
        [btn("❓ Help", "help")],
    ]
    if is_admin:
        rows.append([btn("⚙️ Admin Panel", "admin_panel")])
    return InlineKeyboardMarkup(rows)


def admin_menu() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [btn("📋 List All Sites", "admin_list_sites")],
        [btn("📊 Server Stats", "admin_server_stats")],
        [btn("🗑️ Delete Site", "admin_delete_site")],
        [btn("♻️ Restore Site", "admin_restore_site")],
        [btn("🔙 Back to Menu", "back_menu")],
    ])


def upload_options_menu() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [btn("📦 Upload ZIP File", "upload_zip")],
        [btn("📁 Upload Multiple Files", "upload_files")],
        [btn("🔙 Back to Menu", "back_menu")],
    ])


def cancel_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[btn("❌ Cancel", "cancel")]])


def finish_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [btn("✅ Finish Upload", "finish_upload")],
        [btn("❌ Cancel", "cancel")],
    ])


def deployed_keyboard(url: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [InlineKeyboardButton("🌐 View Site", url=url)],
        [btn("📋 My Sites", "my_sites")],
        [btn("🚀 Upload Another", "upload")],
        [btn("🏠 Main Menu", "back_menu")],
    ])


# ---------------- menus ----------------

def welcome_view(is_admin: bool) -> View:
    text = (
        "🚀 <b>Welcome to Static Site Hosting Bot!</b>\n\n"
        "📤 Upload your HTML, CSS, JS, and images\n"
        "🌐 Get a live hosted URL instantly!\n"
        "⚡ Fast, secure, and completely free!\n\n"
        + ("👑 <b>Admin Mode Enabled</b>\n\n" if is_admin else "")
        + "Choose an option below:"
    )
    return text, main_menu(is_admin)


def back_to_menu_view(is_admin: bool) -> View:
    text = (
        "🚀 <b>Static Site Hosting Bot</b>\n\n"
        + ("👑 <b>Admin Mode</b>\n\n" if is_admin else "")
        + "Choose an option below:"
    )
    return text, main_menu(is_admin)


def help_view(is_admin: bool) -> View:
    text = (
        "📚 <b>How to Use This Bot</b>\n\n"
        "<b>Method 1: ZIP File</b>\n"
        "1️⃣ Click \"Upload New Site\"\n"
        "2️⃣ Select \"Upload ZIP File\"\n"
        "3️⃣ Enter site name\n"
        "4️⃣ Send ZIP file\n"
        "5️⃣ Get your live URL! 🎉\n\n"
        "<b>Method 2: Multiple Files</b>\n"
        "1️⃣ Click \"Upload New Site\"\n"
        "2️⃣ Select \"Upload Multiple Files\"\n"
        "3️⃣ Enter site name\n"
        "4️⃣ Send files one by one\n"
        "5️⃣ Click \"Finish Upload\"\n"
        "6️⃣ Get your live URL! 🎉\n\n"
        "<b>Supported Formats:</b>\n"
        f"<code>{SUPPORTED_FORMATS}</code>\n\n"
        "<b>Tips:</b>\n"
        "• Your main HTML file should be <code>index.html</code>\n"
        "• ZIP files should contain all site files\n"
        f"• Maximum file size: {_mb(MAX_FILE_BYTES)}MB"
    )
    return text, main_menu(is_admin)


def upload_options_view() -> View:
    text = (
        "📤 <b>Choose Upload Method</b>\n\n"
        "🔹 <b>ZIP File:</b> Upload complete site in one file\n"
        "🔹 <b>Multiple Files:</b> Upload files one by one"
    )
    return text, upload_options_menu()


def admin_panel_view() -> View:
    return "⚙️ <b>Admin Panel</b>\n\nManage all hosted sites and view server statistics.", admin_menu()


def cancelled_view(is_admin: bool) -> View:
    return "❌ <b>Cancelled</b>\n\nStart over whenever you're ready!", main_menu(is_admin)


# ---------------- upload flow ----------------

def site_name_prompt_view() -> View:
    text = (
        "📝 <b>Enter Your Site Name</b>\n\n"
        "Example: <code>My Portfolio</code>\n\n"
        "This will be used to create your URL."
    )
    return text, cancel_keyboard()


def files_prompt_view(mode: UploadMode, site_name: str) -> View:
    name = escape(site_name)
    if mode == UploadMode.ARCHIVE:
        return (
            f"✅ Site name: <b>{name}</b>\n\n📦 Now send your ZIP file containing all site files.",
            cancel_keyboard(),
        )
    return (
        f"✅ Site name: <b>{name}</b>\n\n"
        "📁 Now send your files one by one.\n"
        "When done, click \"Finish Upload\" button.",
        finish_keyboard(),
    )


def file_staged_view(file_name: str, size: int, staged_count: int) -> View:
    text = (
        f"✅ <b>{escape(file_name)}</b> uploaded! ({size / 1024:.2f} KB)\n\n"
        f"📦 Total files: <b>{staged_count}</b>\n\n"
        "Send more files or click \"Finish Upload\" when done."
    )
    return text, finish_keyboard()


def downloading_text(file_name: str) -> str:
    return f"⏳ Downloading <b>{escape(file_name)}</b>..."


DEPLOYING_TEXT = "🚀 <b>Deploying your site...</b>\n\n⏳ Please wait..."


def deploy_outcome_view(outcome: DeployOutcome, is_admin: bool) -> View:
    if outcome.ok and outcome.record is not None:
        record = outcome.record
        text = (
            "🎉 <b>Deployment Successful!</b>\n\n"
            "🌐 Your site is live at:\n"
            f"{escape(record.url)}\n\n"
            f"📝 Slug: <code>{escape(record.slug)}</code>\n"
            f"📦 Files: {record.files_count}\n\n"
            "Click the button below to view your site!"
        )
        return text, deployed_keyboard(record.url)

    if outcome.error_code == ErrorCode.DEPLOY_REJECTED:
        return f"❌ Deployment failed: {escape(outcome.error or 'unknown error')}", main_menu(is_admin)

    text = (
        "❌ <b>Deployment Failed</b>\n\n"
        f"Error: {escape(outcome.error or 'unknown error')}"
    )
    return text, main_menu(is_admin)


REJECTION_TEXTS = {
    ErrorCode.FILE_TOO_LARGE: f"❌ File too large! Maximum size is {_mb(MAX_FILE_BYTES)}MB.",
    ErrorCode.NOTHING_STAGED: "No files uploaded yet!",
    ErrorCode.NO_ACTIVE_SESSION: "⚠️ Please start an upload first using the menu buttons!",
    ErrorCode.EMPTY_SITE_NAME: "⚠️ Site name cannot be empty. Please send a name.",
    ErrorCode.EMPTY_SLUG: "⚠️ Please send a site slug.",
    ErrorCode.ACCESS_DENIED: "⛔ Access Denied! Admin only.",
    ErrorCode.HOSTING_UNAVAILABLE: "❌ Hosting service is unreachable. Please try again later.",
    ErrorCode.STORE_UNAVAILABLE: "❌ Site database is unavailable. Please try again later.",
}


def rejection_text(code: ErrorCode) -> str:
    return REJECTION_TEXTS.get(code, "❌ An error occurred. Please try again later.")


# ---------------- sites & stats ----------------

def my_sites_view(records: List[DeploymentRecord], is_admin: bool) -> View:
    if not records:
        text = (
            "📋 <b>My Sites</b>\n\n"
            "You haven't uploaded any sites yet.\n\n"
            "Click \"Upload New Site\" to get started!"
        )
        return text, main_menu(is_admin)

    lines = [f"📋 <b>My Sites</b> ({len(records)})\n"]
    for i, site in enumerate(records[:MY_SITES_BUTTON_LIMIT], start=1):
        lines.append(
            f"{i}. <b>{escape(site.name)}</b>\n"
            f"   └ URL: {escape(site.url)}\n"
            f"   └ Slug: <code>{escape(site.slug)}</code>\n"
            f"   └ Files: {site.files_count}\n"
            f"   └ Uploaded: {_date(site)}\n"
        )
    if len(records) > MY_SITES_BUTTON_LIMIT:
        lines.append(f"<i>Showing first {MY_SITES_BUTTON_LIMIT} sites. Total: {len(records)}</i>\n")

    rows = [
        [InlineKeyboardButton(f"🌐 View {site.name}", url=site.url)]
        for site in records[:MY_SITES_BUTTON_LIMIT]
    ]
    rows.append([btn("🚀 Upload New Site", "upload")])
    rows.append([btn("🏠 Main Menu", "back_menu")])
    return "\n".join(lines), InlineKeyboardMarkup(rows)


def stats_view(summary: UsageSummary, is_admin: bool) -> View:
    text = (
        "📊 <b>Hosting Statistics</b>\n\n"
        f"🌐 Total Sites: <b>{summary.total_sites}</b>\n"
        f"💾 Storage Used: <b>{escape(summary.storage or 'N/A')}</b>\n"
        "✅ Status: <b>Active</b>\n\n"
        f"API: <code>{escape(API_URL)}</code>"
    )
    return text, main_menu(is_admin)


def admin_sites_view(listing: AdminSiteListing) -> View:
    records = listing.records
    if not records:
        return "📋 <b>All Sites</b>\n\nNo sites found.", admin_menu()

    lines = ["📋 <b>All Sites</b>\n"]
    for i, site in enumerate(records[:ADMIN_LIST_LIMIT], start=1):
        lines.append(
            f"{i}. <b>{escape(site.name)}</b>\n"
            f"   └ User ID: {site.user_id}\n"
            f"   └ Slug: <code>{escape(site.slug)}</code>\n"
            f"   └ Files: {site.files_count}\n"
            f"   └ Status: {site.status.value}\n"
            f"   └ Created: {_date(site)}\n"
        )
    if len(records) > ADMIN_LIST_LIMIT:
        lines.append(f"<i>...and {len(records) - ADMIN_LIST_LIMIT} more</i>\n")
    if listing.remote_count is not None:
        lines.append(f"🔗 Hosting API reports <b>{listing.remote_count}</b> sites")
    return "\n".join(lines), admin_menu()


def server_stats_view(stats: ServerStats) -> View:
    db_state = "Connected" if stats.database_connected else "Disconnected"
    text = (
        "📊 <b>Server Statistics</b>\n\n"
        f"🌐 Total Sites: <b>{stats.total_sites}</b>\n"
        f"💾 Storage: <b>{escape(stats.storage or 'N/A')}</b>\n"
        f"📊 Database: <b>{db_state}</b>\n"
        f"⏱️ Uptime: <b>{stats.uptime_minutes} minutes</b>\n"
        f"✅ Status: <b>{escape(stats.api_status or 'Active')}</b>\n\n"
        f"🔗 API: <code>{escape(API_URL)}</code>"
    )
    return text, admin_menu()


# ---------------- admin slug flow ----------------

def slug_prompt_view(action: AdminAction) -> View:
    if action == AdminAction.DELETE:
        return "🗑️ <b>Delete Site</b>\n\nEnter the site slug to delete:", cancel_keyboard()
    return "♻️ <b>Restore Site</b>\n\nEnter the site slug to restore:", cancel_keyboard()


def admin_working_text(action: AdminAction) -> str:
    return "🗑️ Deleting site..." if action == AdminAction.DELETE else "♻️ Restoring site..."


def admin_outcome_view(outcome: AdminActionOutcome) -> View:
    slug = escape(outcome.slug)
    if not outcome.found:
        return f"❌ Site \"{slug}\" not found.", admin_menu()
    verb = "deleted" if outcome.action == AdminAction.DELETE else "restored"
    return f"✅ Site \"{slug}\" {verb} successfully!", admin_menu()


def admin_failure_view(action: AdminAction) -> View:
    verb = "delete" if action == AdminAction.DELETE else "restore"
    return f"❌ Failed to {verb} site.", admin_menu()


def generic_error_view(is_admin: bool) -> View:
    return "❌ An error occurred. Please try again later.", main_menu(is_admin)


def error_view(code: ErrorCode, is_admin: bool) -> View:
    return rejection_text(code), main_menu(is_admin)
