import logging
from typing import List

from sqlalchemy import func, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from database import SessionLocal
from models.common_models import DeploymentRecord, SiteStatus
from models.errors import BusinessError, ErrorCode, TransportError
from models.site_db_model import SiteDB

logger = logging.getLogger(__name__)


def _store_unavailable(e: Exception) -> TransportError:
    return TransportError(ErrorCode.STORE_UNAVAILABLE, f"Record store error: {e.__class__.__name__}")


class RecordStore:
    """
    One row per successful deployment. Every call opens its own session, so
    concurrent callers for different owners never share state.
    """

    def __init__(self, session_factory: async_sessionmaker = SessionLocal):
        self.session_factory = session_factory

    async def save(self, owner_id: int, name: str, slug: str, url: str, file_count: int) -> DeploymentRecord:
        site = SiteDB(
            user_id=owner_id,
            name=name,
            slug=slug,
            url=url,
            files_count=file_count,
            status=SiteStatus.ACTIVE.value,
        )
        try:
            async with self.session_factory() as db:
                db.add(site)
                await db.commit()
                await db.refresh(site)
        except IntegrityError as e:
            logger.error(f"Slug {slug!r} already recorded")
            raise BusinessError(ErrorCode.DUPLICATE_SLUG, f"Site slug '{slug}' already exists") from e
        except SQLAlchemyError as e:
            raise _store_unavailable(e) from e

        logger.info(f"Saved site {name!r} ({slug}) for user {owner_id}")
        return DeploymentRecord.model_validate(site)

    async def list_by_owner(self, owner_id: int, status: SiteStatus = SiteStatus.ACTIVE) -> List[DeploymentRecord]:
        query = (
            select(SiteDB)
            .where(SiteDB.user_id == owner_id, SiteDB.status == status.value)
            .order_by(SiteDB.uploaded_at.desc(), SiteDB.id.desc())
        )
        return await self._fetch(query)

    async def list_all(self) -> List[DeploymentRecord]:
        query = select(SiteDB).order_by(SiteDB.uploaded_at.desc(), SiteDB.id.desc())
        return await self._fetch(query)

    async def _fetch(self, query) -> List[DeploymentRecord]:
        try:
            async with self.session_factory() as db:
                rows = (await db.execute(query)).scalars().all()
        except SQLAlchemyError as e:
            raise _store_unavailable(e) from e
        return [DeploymentRecord.model_validate(row) for row in rows]

    async def set_status(self, slug: str, status: SiteStatus) -> bool:
        """False when no record has this slug."""
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    update(SiteDB).where(SiteDB.slug == slug).values(status=status.value)
                )
                await db.commit()
        except SQLAlchemyError as e:
            raise _store_unavailable(e) from e
        return result.rowcount > 0

    async def count_active(self) -> int:
        try:
            async with self.session_factory() as db:
                count = await db.scalar(
                    select(func.count()).select_from(SiteDB).where(SiteDB.status == SiteStatus.ACTIVE.value)
                )
        except SQLAlchemyError as e:
            raise _store_unavailable(e) from e
        return int(count or 0)

    async def ping(self) -> bool:
        try:
            async with self.session_factory() as db:
                await db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning(f"Record store ping failed: {e}")
            return False
        return True
