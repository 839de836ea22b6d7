"""
Telegram front-end: classifies updates, feeds them to the ConversationService
and renders whatever comes back.

Every handler runs inside ``boundary`` so no exception escapes to the
transport; unknown failures become a generic error message.
"""

import functools
import logging
from typing import Awaitable, Callable, Dict, Optional

from telegram import InlineKeyboardMarkup, Update
from telegram.constants import ParseMode
from telegram.error import BadRequest, TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from models.common_models import AdminActionOutcome, DeployOutcome
from models.errors import ApplicationError, AuthorizationError, ErrorCode, TransportError
from models.session_models import (
    AdminAction,
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
    SessionState,
    StartAdminAction,
    StartUpload,
    SubmitFile,
    SubmitText,
    UploadMode,
)
from services import menu_service as views
from services.conversation_service import ConversationService, DispatchResult
from services.upload_session_service import is_oversized

logger = logging.getLogger(__name__)

Handler = Callable[["BotRouter", Update, ContextTypes.DEFAULT_TYPE], Awaitable[None]]

_ADMIN_SLUG_STATES = {
    SessionState.ADMIN_AWAITING_SLUG_FOR_DELETE: AdminAction.DELETE,
    SessionState.ADMIN_AWAITING_SLUG_FOR_RESTORE: AdminAction.RESTORE,
}


def boundary(handler: Handler) -> Handler:
    @functools.wraps(handler)
    async def wrapper(self: "BotRouter", update: Update, context: ContextTypes.DEFAULT_TYPE):
        try:
            await handler(self, update, context)
        except AuthorizationError as e:
            await self._alert(update, views.rejection_text(e.code))
        except ApplicationError as e:
            logger.warning(f"{handler.__name__} failed | code={e.code.value} | {e.message}")
            await self._show(update, *views.error_view(e.code, self._is_admin(update)))
        except Exception:
            logger.exception(f"Unhandled error in {handler.__name__}")
            await self._show(update, *views.generic_error_view(self._is_admin(update)))
    return wrapper


class BotRouter:
    def __init__(self, conversations: ConversationService):
        self.conversations = conversations
        self._callbacks: Dict[str, Handler] = {
            "upload": BotRouter._cb_upload,
            "upload_zip": BotRouter._cb_upload_zip,
            "upload_files": BotRouter._cb_upload_files,
            "my_sites": BotRouter._cb_my_sites,
            "stats": BotRouter._cb_stats,
            "help": BotRouter._cb_help,
            "admin_panel": BotRouter._cb_admin_panel,
            "admin_list_sites": BotRouter._cb_admin_list_sites,
            "admin_server_stats": BotRouter._cb_admin_server_stats,
            "admin_delete_site": BotRouter._cb_admin_delete_site,
            "admin_restore_site": BotRouter._cb_admin_restore_site,
            "finish_upload": BotRouter._cb_finish_upload,
            "back_menu": BotRouter._cb_back_menu,
            "cancel": BotRouter._cb_cancel,
        }

    # ---------------- rendering helpers ----------------

    def _is_admin(self, update: Optional[Update]) -> bool:
        user = update.effective_user if update else None
        return bool(user) and self.conversations.is_admin(user.id)

    async def _show(self, update: Optional[Update], text: str, markup: Optional[InlineKeyboardMarkup] = None):
        """Edit the menu message for button presses, reply otherwise."""
        if update is None:
            return
        try:
            if update.callback_query is not None:
                await update.callback_query.edit_message_text(
                    text, parse_mode=ParseMode.HTML, reply_markup=markup
                )
            elif update.effective_message is not None:
                await update.effective_message.reply_text(
                    text, parse_mode=ParseMode.HTML, reply_markup=markup
                )
        except BadRequest as e:
            if "not modified" in str(e).lower():
                logger.debug("Menu unchanged, edit skipped")
                return
            logger.error(f"Telegram rejected message: {e}")
        except TelegramError as e:
            logger.error(f"Could not deliver message: {e}")

    async def _reply(self, update: Update, text: str, markup: Optional[InlineKeyboardMarkup] = None):
        try:
            return await update.effective_message.reply_text(
                text, parse_mode=ParseMode.HTML, reply_markup=markup
            )
        except TelegramError as e:
            logger.error(f"Could not deliver message: {e}")
            return None

    async def _alert(self, update: Update, text: str):
        if update.callback_query is not None:
            try:
                await update.callback_query.answer(text, show_alert=True)
            except TelegramError as e:
                logger.error(f"Could not answer callback: {e}")
        # text messages from non-admins are dropped without a reply

    async def _answer(self, update: Update, text: Optional[str] = None):
        try:
            await update.callback_query.answer(text)
        except TelegramError as e:
            # already answered or expired; harmless
            logger.debug(f"Callback answer skipped: {e}")

    async def _render(self, update: Update, result: DispatchResult):
        is_admin = self._is_admin(update)

        if isinstance(result, PromptSiteName):
            await self._show(update, *views.site_name_prompt_view())
        elif isinstance(result, PromptFiles):
            await self._show(update, *views.files_prompt_view(result.upload_mode, result.site_name))
        elif isinstance(result, FileStaged):
            await self._show(update, *views.file_staged_view(result.file_name, result.size, result.staged_count))
        elif isinstance(result, DeployOutcome):
            await self._show(update, *views.deploy_outcome_view(result, is_admin))
        elif isinstance(result, PromptSlug):
            await self._show(update, *views.slug_prompt_view(result.action))
        elif isinstance(result, AdminActionOutcome):
            await self._show(update, *views.admin_outcome_view(result))
        elif isinstance(result, Cancelled):
            await self._show(update, *views.cancelled_view(is_admin))
        elif isinstance(result, Rejected):
            await self._render_rejection(update, result)
        elif isinstance(result, Ignored):
            return
        else:
            logger.error(f"No view for dispatch result {type(result).__name__}")

    async def _render_rejection(self, update: Update, rejected: Rejected):
        text = views.rejection_text(rejected.code)
        if update.callback_query is not None:
            await self._alert(update, text)
        elif rejected.code != ErrorCode.ACCESS_DENIED:
            await self._reply(update, text)

    def _deploying_notice(self, update: Update) -> Callable[[Deploy], Awaitable[None]]:
        async def notify(effect: Deploy):
            if update.callback_query is not None:
                await self._answer(update, "Deploying your site...")
            await self._show(update, views.DEPLOYING_TEXT)
        return notify

    # ---------------- commands ----------------

    @boundary
    async def cmd_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        await self._reply(update, *views.welcome_view(self._is_admin(update)))

    # ---------------- callback buttons ----------------

    @boundary
    async def on_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        data = update.callback_query.data or ""
        handler = self._callbacks.get(data)
        if handler is None:
            logger.warning(f"Unknown callback data {data!r}")
            await self._answer(update)
            return
        await handler(self, update, context)

    async def _dispatch(self, update: Update, event, **kwargs) -> DispatchResult:
        return await self.conversations.dispatch(
            update.effective_chat.id, update.effective_user.id, event, **kwargs
        )

    async def _cb_upload(self, update, context):
        await self._answer(update)
        await self._show(update, *views.upload_options_view())

    async def _start_upload(self, update, mode: UploadMode):
        await self._answer(update)
        await self._render(update, await self._dispatch(update, StartUpload(mode=mode)))

    async def _cb_upload_zip(self, update, context):
        await self._start_upload(update, UploadMode.ARCHIVE)

    async def _cb_upload_files(self, update, context):
        await self._start_upload(update, UploadMode.MULTI_FILE)

    async def _cb_my_sites(self, update, context):
        await self._answer(update, "Loading your sites...")
        try:
            records = await self.conversations.my_sites(update.effective_user.id)
        except TransportError:
            await self._show(update, "❌ Failed to load your sites.", views.main_menu(self._is_admin(update)))
            return
        await self._show(update, *views.my_sites_view(records, self._is_admin(update)))

    async def _cb_stats(self, update, context):
        await self._answer(update, "Fetching statistics...")
        try:
            summary = await self.conversations.usage_summary()
        except TransportError:
            await self._show(
                update,
                "❌ Failed to fetch statistics.\n\nPlease try again later.",
                views.main_menu(self._is_admin(update)),
            )
            return
        await self._show(update, *views.stats_view(summary, self._is_admin(update)))

    async def _cb_help(self, update, context):
        await self._answer(update)
        await self._show(update, *views.help_view(self._is_admin(update)))

    async def _cb_admin_panel(self, update, context):
        self.conversations.require_admin(update.effective_user.id)
        await self._answer(update)
        await self._show(update, *views.admin_panel_view())

    async def _cb_admin_list_sites(self, update, context):
        self.conversations.require_admin(update.effective_user.id)
        await self._answer(update, "Fetching sites...")
        try:
            listing = await self.conversations.admin_site_listing(update.effective_user.id)
        except TransportError:
            await self._show(update, "❌ Failed to fetch sites.", views.admin_menu())
            return
        await self._show(update, *views.admin_sites_view(listing))

    async def _cb_admin_server_stats(self, update, context):
        self.conversations.require_admin(update.effective_user.id)
        await self._answer(update, "Fetching stats...")
        try:
            stats = await self.conversations.server_stats(update.effective_user.id)
        except TransportError:
            await self._show(update, "❌ Failed to fetch server stats.", views.admin_menu())
            return
        await self._show(update, *views.server_stats_view(stats))

    async def _start_admin_action(self, update, action: AdminAction):
        result = await self._dispatch(update, StartAdminAction(action=action))
        if not isinstance(result, Rejected):
            await self._answer(update)
        await self._render(update, result)

    async def _cb_admin_delete_site(self, update, context):
        await self._start_admin_action(update, AdminAction.DELETE)

    async def _cb_admin_restore_site(self, update, context):
        await self._start_admin_action(update, AdminAction.RESTORE)

    async def _cb_finish_upload(self, update, context):
        result = await self._dispatch(update, Finalize(), on_deploying=self._deploying_notice(update))
        await self._render(update, result)

    async def _cb_back_menu(self, update, context):
        await self._dispatch(update, Cancel())
        await self._answer(update)
        await self._show(update, *views.back_to_menu_view(self._is_admin(update)))

    async def _cb_cancel(self, update, context):
        result = await self._dispatch(update, Cancel())
        await self._answer(update, "Cancelled")
        await self._render(update, result)

    # ---------------- messages ----------------

    @boundary
    async def on_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        text = update.message.text or ""
        state = self.conversations.current_state(update.effective_chat.id)
        admin_action = _ADMIN_SLUG_STATES.get(state)

        if admin_action is not None and self._is_admin(update) and text.strip():
            await self._reply(update, views.admin_working_text(admin_action))

        try:
            result = await self._dispatch(update, SubmitText(text=text))
        except TransportError:
            if admin_action is None:
                raise
            await self._reply(update, *views.admin_failure_view(admin_action))
            return

        await self._render(update, result)

    @boundary
    async def on_document(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        document = update.message.document
        chat_id = update.effective_chat.id

        if self.conversations.current_state(chat_id) != SessionState.AWAITING_FILES:
            await self._reply(update, views.rejection_text(ErrorCode.NO_ACTIVE_SESSION))
            return

        # Declared size is checked before paying for the download
        if is_oversized(document.file_size, self.conversations.max_file_bytes):
            await self._reply(update, views.rejection_text(ErrorCode.FILE_TOO_LARGE))
            return

        file_name = document.file_name or "upload.bin"
        notice = await self._reply(update, views.downloading_text(file_name))
        try:
            tg_file = await document.get_file()
            content = bytes(await tg_file.download_as_bytearray())
        except TelegramError as e:
            logger.error(f"Download of {file_name!r} failed: {e}")
            await self._reply(update, "❌ Failed to download file. Please try again.")
            return
        finally:
            if notice is not None:
                try:
                    await notice.delete()
                except TelegramError:
                    logger.debug("Download notice already gone")

        result = await self._dispatch(
            update,
            SubmitFile(file_name=file_name, content=content),
            on_deploying=self._deploying_notice(update),
        )
        await self._render(update, result)

    # ---------------- last resort ----------------

    async def on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE):
        logger.error("Bot error", exc_info=context.error)
        if isinstance(update, Update) and update.effective_message is not None:
            await self._reply(update, *views.generic_error_view(self._is_admin(update)))

    def register(self, application: Application):
        application.add_handler(CommandHandler("start", self.cmd_start))
        application.add_handler(CallbackQueryHandler(self.on_callback))
        application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, self.on_text))
        application.add_handler(MessageHandler(filters.Document.ALL, self.on_document))
        application.add_error_handler(self.on_error)


def build_application(token: str, router: BotRouter) -> Application:
    application = Application.builder().token(token).build()
    router.register(application)
    return application
