"""Client for the remote static hosting API"""

import base64
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from config import API_URL, HOSTING_TIMEOUT_SECONDS
from models.common_models import (
    ActionResult,
    DeployResult,
    HealthStatus,
    RemoteSite,
    UploadFile,
    UploadRequest,
    UsageStats,
)
from models.errors import ErrorCode, TransportError
from models.session_models import StagedFile

logger = logging.getLogger(__name__)


def _error_from_body(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return None


class HostingClient:
    """
    Thin async wrapper over the hosting API.

    Deploy and admin calls raise TransportError when the API cannot be reached.
    Usage and health lookups are best effort and return None instead.
    """

    def __init__(
        self,
        base_url: str = API_URL,
        timeout: float = HOSTING_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        # Fresh client per request; calls are infrequent and long-lived ones
        # tie themselves to whichever event loop created them
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"[HOSTING] timeout | {method} {path} | timeout={self.timeout}s")
            raise TransportError(
                ErrorCode.HOSTING_UNAVAILABLE,
                f"Hosting API timed out after {int(self.timeout)}s",
            ) from e
        except httpx.TransportError as e:
            logger.error(f"[HOSTING] transport error | {method} {path} | error={e}")
            raise TransportError(ErrorCode.HOSTING_UNAVAILABLE, "Hosting API is unreachable") from e

    async def deploy(self, site_name: str, files: Sequence[StagedFile]) -> DeployResult:
        payload = UploadRequest(
            site_name=site_name,
            files=[
                UploadFile(
                    file_name=f.file_name,
                    file_data=base64.b64encode(f.content).decode("ascii"),
                )
                for f in files
            ],
        )

        logger.info(f"[HOSTING] POST /api/upload | site={site_name!r} | files={len(files)}")
        response = await self._request("POST", "/api/upload", json=payload.model_dump(by_alias=True))

        if response.is_success:
            try:
                return DeployResult.model_validate(response.json())
            except ValueError as e:
                raise TransportError(
                    ErrorCode.HOSTING_UNAVAILABLE,
                    "Hosting API returned an unreadable response",
                ) from e

        error = _error_from_body(response)
        if error is not None:
            logger.warning(f"[HOSTING] deploy refused | status={response.status_code} | error={error}")
            return DeployResult(ok=False, error=error)

        logger.error(f"[HOSTING] deploy failed | status={response.status_code}")
        raise TransportError(ErrorCode.HOSTING_UNAVAILABLE, f"Hosting API answered HTTP {response.status_code}")

    async def _best_effort_json(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            response = await self._request("GET", path)
            response.raise_for_status()
            body = response.json()
        except (TransportError, httpx.HTTPStatusError, ValueError) as e:
            logger.warning(f"[HOSTING] GET {path} unavailable: {e}")
            return None
        return body if isinstance(body, dict) else None

    async def fetch_usage_stats(self) -> Optional[UsageStats]:
        body = await self._best_effort_json("/api/admin/usage")
        return UsageStats.model_validate(body) if body is not None else None

    async def fetch_health(self) -> Optional[HealthStatus]:
        body = await self._best_effort_json("/health")
        return HealthStatus.model_validate(body) if body is not None else None

    async def list_all_sites(self) -> List[RemoteSite]:
        response = await self._request("GET", "/api/admin/sites")
        if not response.is_success:
            raise TransportError(ErrorCode.HOSTING_UNAVAILABLE, f"Hosting API answered HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(ErrorCode.HOSTING_UNAVAILABLE, "Hosting API returned an unreadable site list") from e
        items = body.get("sites", []) if isinstance(body, dict) else body
        sites = []
        for item in items or []:
            if isinstance(item, dict) and item.get("slug"):
                sites.append(RemoteSite.model_validate(item))
        return sites

    async def _site_action(self, slug: str, action: str) -> ActionResult:
        path = f"/api/admin/site/{slug}/{action}"
        response = await self._request("POST", path)
        if response.is_success:
            try:
                return ActionResult.model_validate(response.json())
            except ValueError:
                return ActionResult(ok=True)
        return ActionResult(ok=False, error=_error_from_body(response) or f"HTTP {response.status_code}")

    async def request_delete(self, slug: str) -> ActionResult:
        return await self._site_action(slug, "delete")

    async def request_restore(self, slug: str) -> ActionResult:
        return await self._site_action(slug, "restore")
