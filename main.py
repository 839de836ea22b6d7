import logging
import sys

from fastapi import FastAPI

import config
from database import SessionLocal, create_db, engine
from routers import health_router
from routers.bot_router import BotRouter, build_application
from services.conversation_service import ConversationService
from services.hosting_client import HostingClient
from services.record_store import RecordStore
from services.session_store import SessionStore

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
# httpx logs every request at INFO, including the bot token in Telegram URLs
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Static Site Hosting Bot",
    description="Telegram front-end that deploys static sites to the hosting API.",
    version="0.1.0",
)

app.state.record_store = RecordStore(SessionLocal)
app.state.bot = None


def build_conversation_service(record_store: RecordStore) -> ConversationService:
    return ConversationService(
        session_store=SessionStore(),
        hosting_client=HostingClient(config.API_URL, timeout=config.HOSTING_TIMEOUT_SECONDS),
        record_store=record_store,
        admin_ids=config.ADMIN_IDS,
    )


@app.on_event("startup")
async def on_startup():
    logger.info("Initializing database...")
    await create_db()
    logger.info("Database initialized.")

    if not config.BOT_TOKEN:
        logger.warning("TELEGRAM_BOT_TOKEN not set - bot disabled, health endpoints only")
        return

    conversations = build_conversation_service(app.state.record_store)
    bot = build_application(config.BOT_TOKEN, BotRouter(conversations))

    # Runs inside uvicorn's event loop instead of run_polling(), which wants its own
    await bot.initialize()
    await bot.start()
    await bot.updater.start_polling(drop_pending_updates=True)
    app.state.bot = bot

    logger.info(f"Telegram bot started | API URL: {config.API_URL}")
    logger.info(f"Admin IDs: {', '.join(map(str, sorted(config.ADMIN_IDS))) or 'None set'}")


@app.on_event("shutdown")
async def on_shutdown():
    bot = app.state.bot
    if bot is not None:
        logger.info("Stopping Telegram bot...")
        await bot.updater.stop()
        await bot.stop()
        await bot.shutdown()
        app.state.bot = None
    await engine.dispose()


app.include_router(health_router.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
