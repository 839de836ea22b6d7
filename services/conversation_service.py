"""
Runs upload-session events for one conversation at a time: applies the pure
transition, stores the next session, then executes whatever I/O the effect
asks for (deploy, admin delete/restore).

Also serves the read-only views (my sites, stats, admin listings) so the
router never talks to the stores directly.
"""

import logging
from typing import Awaitable, Callable, FrozenSet, Iterable, List, Optional, Union

from config import MAX_FILE_BYTES
from models.common_models import (
    AdminActionOutcome,
    AdminSiteListing,
    DeployOutcome,
    DeploymentRecord,
    ServerStats,
    SiteStatus,
    UsageSummary,
)
from models.errors import AuthorizationError, TransportError
from models.session_models import (
    AdminAction,
    Deploy,
    Effect,
    Event,
    RunAdminAction,
    SessionState,
    state_of,
)
from services.deploy_service import DeployService
from services.hosting_client import HostingClient
from services.record_store import RecordStore
from services.session_store import SessionStore
from services.stats_service import get_server_stats, get_usage_summary
from services.upload_session_service import transition

logger = logging.getLogger(__name__)

DispatchResult = Union[Effect, DeployOutcome, AdminActionOutcome]
DeployingHook = Callable[[Deploy], Awaitable[None]]


class ConversationService:
    def __init__(
        self,
        session_store: SessionStore,
        hosting_client: HostingClient,
        record_store: RecordStore,
        deploy_service: Optional[DeployService] = None,
        admin_ids: Iterable[int] = (),
        max_file_bytes: int = MAX_FILE_BYTES,
    ):
        self.session_store = session_store
        self.hosting_client = hosting_client
        self.record_store = record_store
        self.deploy_service = deploy_service or DeployService(hosting_client, record_store)
        self.admin_ids: FrozenSet[int] = frozenset(admin_ids)
        self.max_file_bytes = max_file_bytes

    def is_admin(self, user_id: int) -> bool:
        return user_id in self.admin_ids

    def require_admin(self, user_id: int):
        if not self.is_admin(user_id):
            logger.warning(f"Denied admin action for user {user_id}")
            raise AuthorizationError()

    def current_state(self, conversation_id: int) -> SessionState:
        return state_of(self.session_store.get_session(conversation_id))

    async def dispatch(
        self,
        conversation_id: int,
        user_id: int,
        event: Event,
        on_deploying: Optional[DeployingHook] = None,
    ) -> DispatchResult:
        async with self.session_store.lock(conversation_id):
            session = self.session_store.get_session(conversation_id)
            step = transition(
                session,
                event,
                is_admin=self.is_admin(user_id),
                max_file_bytes=self.max_file_bytes,
            )
            # Stored before any I/O so a failed deploy can never leave the
            # conversation stuck mid-flow
            self.session_store.save_session(conversation_id, step.session)

            effect = step.effect
            if isinstance(effect, Deploy):
                if on_deploying is not None:
                    await on_deploying(effect)
                return await self.deploy_service.deploy(user_id, effect.site_name, effect.files)

            if isinstance(effect, RunAdminAction):
                return await self._run_admin_action(effect)

            return effect

    async def _run_admin_action(self, effect: RunAdminAction) -> AdminActionOutcome:
        if effect.action == AdminAction.DELETE:
            found = await self.record_store.set_status(effect.slug, SiteStatus.DELETED)
            request = self.hosting_client.request_delete
        else:
            found = await self.record_store.set_status(effect.slug, SiteStatus.ACTIVE)
            request = self.hosting_client.request_restore

        remote_confirmed = False
        try:
            remote = await request(effect.slug)
            remote_confirmed = remote.ok
            if not remote.ok:
                logger.info(f"Hosting API declined {effect.action.value} of {effect.slug}: {remote.error}")
        except TransportError as e:
            logger.warning(f"Hosting API unreachable for {effect.action.value} of {effect.slug}: {e.message}")

        outcome = AdminActionOutcome(
            action=effect.action,
            slug=effect.slug,
            found=found or remote_confirmed,
            remote_confirmed=remote_confirmed,
        )
        logger.info(
            f"Admin {effect.action.value} {effect.slug} | local={found} | remote={remote_confirmed}"
        )
        return outcome

    # ---------------- read-only views ----------------

    async def my_sites(self, user_id: int) -> List[DeploymentRecord]:
        return await self.record_store.list_by_owner(user_id)

    async def usage_summary(self) -> UsageSummary:
        return await get_usage_summary(self.hosting_client, self.record_store)

    async def admin_site_listing(self, user_id: int) -> AdminSiteListing:
        self.require_admin(user_id)
        records = await self.record_store.list_all()

        remote_count = None
        try:
            remote_count = len(await self.hosting_client.list_all_sites())
        except TransportError as e:
            logger.warning(f"Remote site listing unavailable: {e.message}")

        return AdminSiteListing(records=records, remote_count=remote_count)

    async def server_stats(self, user_id: int) -> ServerStats:
        self.require_admin(user_id)
        return await get_server_stats(self.hosting_client, self.record_store)
