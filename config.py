import os
from dotenv import load_dotenv

load_dotenv()


def parse_admin_ids(raw: str) -> frozenset:
    """Comma separated Telegram user ids; blanks and junk are skipped."""
    ids = set()
    for part in (raw or "").split(","):
        part = part.strip()
        if part.lstrip("-").isdigit():
            ids.add(int(part))
    return frozenset(ids)


BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "").strip()
API_URL = os.getenv("API_URL", "https://as-static-hosting.onrender.com").rstrip("/")
PORT = int(os.getenv("PORT", "3001"))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./sites.db")

# Privileged users; handed to ConversationService at startup, never read by the core directly
ADMIN_IDS = parse_admin_ids(os.getenv("ADMIN_IDS", ""))

HOSTING_TIMEOUT_SECONDS = float(os.getenv("HOSTING_TIMEOUT_SECONDS", "60"))

# Per-file cap enforced at staging time
MAX_FILE_BYTES = 50 * 1024 * 1024

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
