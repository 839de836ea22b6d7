"""
Deploy orchestration: hand staged files to the hosting API and, when it
accepts them, persist a deployment record.

There is no transaction spanning both steps. If the record cannot be saved
after a successful deploy the site stays live without a record; that case is
logged as an orphan so it can be reconciled by hand.
"""

import logging
from typing import Sequence

from models.common_models import DeployOutcome
from models.errors import ApplicationError, BusinessError, ErrorCode
from models.session_models import StagedFile
from services.hosting_client import HostingClient
from services.record_store import RecordStore

logger = logging.getLogger(__name__)


class DeployService:
    def __init__(self, hosting_client: HostingClient, record_store: RecordStore):
        self.hosting_client = hosting_client
        self.record_store = record_store

    async def deploy(self, owner_id: int, site_name: str, files: Sequence[StagedFile]) -> DeployOutcome:
        """
        Never raises ApplicationError: every failure comes back as an
        ``ok=False`` outcome carrying the error code and a user-facing message.
        No retry is attempted.
        """
        file_count = len(files)
        logger.info(f"Deploying {site_name!r} for user {owner_id} | files={file_count}")

        try:
            result = await self.hosting_client.deploy(site_name, files)
            if not result.ok:
                raise BusinessError(ErrorCode.DEPLOY_REJECTED, result.error or "Hosting API rejected the upload")
            if not result.slug or not result.url:
                raise BusinessError(ErrorCode.DEPLOY_REJECTED, "Hosting API did not return a site address")
        except ApplicationError as e:
            logger.warning(f"Deploy of {site_name!r} failed | code={e.code.value} | {e.message}")
            return DeployOutcome(
                ok=False,
                site_name=site_name,
                file_count=file_count,
                error_code=e.code,
                error=e.message,
            )

        try:
            record = await self.record_store.save(
                owner_id=owner_id,
                name=site_name,
                slug=result.slug,
                url=result.url,
                file_count=file_count,
            )
        except ApplicationError as e:
            logger.error(
                f"Orphaned deployment: {result.slug} is live at {result.url} "
                f"but could not be recorded | code={e.code.value} | {e.message}"
            )
            return DeployOutcome(
                ok=False,
                site_name=site_name,
                file_count=file_count,
                error_code=e.code,
                error=e.message,
            )

        logger.info(f"Deployed {site_name!r} -> {record.url}")
        return DeployOutcome(ok=True, site_name=site_name, file_count=file_count, record=record)
