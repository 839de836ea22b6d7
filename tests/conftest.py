"""
Shared fixtures: an in-memory record store and a fake hosting API served
through httpx.MockTransport.
"""
import json
from typing import Callable, List, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from database import build_engine, build_session_factory, create_db
from services.conversation_service import ConversationService
from services.hosting_client import HostingClient
from services.record_store import RecordStore
from services.session_store import SessionStore

ADMIN_ID = 1001
USER_ID = 42
CHAT_ID = 42

MB = 1024 * 1024


class FakeHostingAPI:
    """Records every request; responses can be swapped per test."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.deploy_response: Callable[[httpx.Request], httpx.Response] = self._deploy_ok
        self.usage: Optional[dict] = {"totalSites": 12, "totalStorageFormatted": "3.4 MB"}
        self.health: Optional[dict] = {"status": "ok", "uptime": 100}
        self.sites: List[dict] = []
        self.known_slugs = set()
        self.fail_reads = False
        self.offline = False

    @staticmethod
    def _deploy_ok(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        slug = body["siteName"].lower().replace(" ", "-") + "-ab12"
        return httpx.Response(200, json={"ok": True, "slug": slug, "url": f"https://sites.example/{slug}"})

    def deploy_calls(self) -> List[dict]:
        return [json.loads(r.content) for r in self.requests if r.url.path == "/api/upload"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("connection refused", request=request)
        path = request.url.path

        if path == "/api/upload":
            return self.deploy_response(request)

        if self.fail_reads and request.method == "GET":
            raise httpx.ConnectError("connection refused", request=request)

        if path == "/api/admin/usage":
            return httpx.Response(200, json=self.usage) if self.usage is not None else httpx.Response(500)
        if path == "/health":
            return httpx.Response(200, json=self.health) if self.health is not None else httpx.Response(503)
        if path == "/api/admin/sites":
            return httpx.Response(200, json={"sites": self.sites})

        if path.startswith("/api/admin/site/"):
            slug = path.split("/")[4]
            if slug in self.known_slugs:
                return httpx.Response(200, json={"ok": True})
            return httpx.Response(404, json={"ok": False, "error": "Site not found"})

        return httpx.Response(404)


@pytest.fixture
def fake_api():
    return FakeHostingAPI()


@pytest.fixture
def hosting_client(fake_api):
    return HostingClient("https://hosting.test", timeout=5, transport=httpx.MockTransport(fake_api.handler))


@pytest_asyncio.fixture
async def record_store():
    engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_db(engine)
    yield RecordStore(build_session_factory(engine))
    await engine.dispose()


@pytest.fixture
def session_store():
    return SessionStore()


@pytest.fixture
def conversations(session_store, hosting_client, record_store):
    return ConversationService(
        session_store=session_store,
        hosting_client=hosting_client,
        record_store=record_store,
        admin_ids={ADMIN_ID},
    )
