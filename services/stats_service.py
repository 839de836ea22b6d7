import asyncio
import logging
import time
from typing import Optional

from models.common_models import HealthStatus, ServerStats, UsageStats, UsageSummary
from models.errors import TransportError
from services.hosting_client import HostingClient
from services.record_store import RecordStore

logger = logging.getLogger(__name__)

_PROCESS_STARTED = time.monotonic()


def uptime_seconds(started: float = _PROCESS_STARTED) -> float:
    return round(time.monotonic() - started, 1)


def uptime_minutes(started: float = _PROCESS_STARTED) -> int:
    return int((time.monotonic() - started) // 60)


def merge_usage(usage: Optional[UsageStats], local_active: int) -> UsageSummary:
    """Remote numbers win when present, local count otherwise."""
    if usage is None:
        return UsageSummary(total_sites=local_active, storage=None)
    return UsageSummary(
        total_sites=usage.total_sites or local_active,
        storage=usage.total_storage_formatted or None,
    )


async def _local_active_count(record_store: RecordStore) -> int:
    """0 when the record store is unreachable."""
    try:
        return await record_store.count_active()
    except TransportError as e:
        logger.warning(f"Local site count unavailable: {e.message}")
        return 0


async def get_usage_summary(hosting_client: HostingClient, record_store: RecordStore) -> UsageSummary:
    usage, local_active = await asyncio.gather(
        hosting_client.fetch_usage_stats(),
        _local_active_count(record_store),
    )
    return merge_usage(usage, local_active)


async def get_server_stats(hosting_client: HostingClient, record_store: RecordStore) -> ServerStats:
    usage, health, local_active, db_ok = await asyncio.gather(
        hosting_client.fetch_usage_stats(),
        hosting_client.fetch_health(),
        _local_active_count(record_store),
        record_store.ping(),
    )
    summary = merge_usage(usage, local_active)
    api_status = health.status if isinstance(health, HealthStatus) else None

    return ServerStats(
        total_sites=summary.total_sites,
        storage=summary.storage,
        database_connected=db_ok,
        uptime_minutes=uptime_minutes(),
        api_status=api_status,
    )
