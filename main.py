import asyncio
import logging
from datetime import timedelta
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, HTTPException
from telegram import Update
from telegram.error import RetryAfter

import config
from api import router as api_router
from bot import PetBot, setup_bot
from database import Database
from minigames import MinigameManager
from service import PetService

# Logger setup
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)


def build_service(db_path: str = config.DB_PATH) -> PetService:
    """Builds the service graph explicitly; nothing lives at module level."""
    minigames = MinigameManager(retention=timedelta(hours=config.SESSION_RETENTION_HOURS))
    return PetService(Database(db_path), minigames=minigames)


async def decay_loop(service: PetService, interval: float):
    """Periodic decay tick plus stale-session sweep. Runs until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            ticked = await asyncio.to_thread(service.tick_all)
            applied = sum(1 for units in ticked.values() if units)
            if applied:
                logger.info(f"Decay applied to {applied} pet(s)")
            await asyncio.to_thread(service.sweep_sessions)
        except Exception as e:
            logger.error(f"Decay loop iteration failed: {e}")


def create_app(service: Optional[PetService] = None) -> FastAPI:
    service = service or build_service()
    pet_bot = PetBot(service, config.BASE_WEBAPP_URL, config.WEBHOOK_URL) if config.BOT_ENABLED else None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Runs on application startup and shutdown.
        """
        logger.info("Starting application...")
        decay_task = asyncio.create_task(decay_loop(service, config.DECAY_INTERVAL_SECONDS))

        if pet_bot is not None:
            await setup_bot(pet_bot, config.BOT_TOKEN)
            try:
                await pet_bot.application.bot.set_webhook(
                    url=pet_bot.webhook_url,
                    allowed_updates=["message", "callback_query"]
                )
                logger.info(f"Webhook set to: {pet_bot.webhook_url}")
            except RetryAfter as e:
                logger.warning(f"Telegram flood control: retry after {e.retry_after}s. The webhook is probably already set by another process.")
            except Exception as e:
                logger.error(f"Failed to set webhook: {e}")
        else:
            logger.info("BOT_TOKEN/WEBAPP_URL not set, Telegram bot disabled.")

        yield

        logger.info("Stopping application...")
        decay_task.cancel()
        try:
            await decay_task
        except asyncio.CancelledError:
            pass

        if pet_bot is not None:
            try:
                await pet_bot.application.bot.delete_webhook()
                logger.info("Webhook deleted.")
            except Exception as e:
                logger.error(f"Failed to delete webhook: {e}")

    app = FastAPI(lifespan=lifespan, title="Bookish Pet")
    app.state.service = service
    app.include_router(api_router)

    @app.get("/", include_in_schema=False)
    async def root():
        return {"name": "Bookish Pet API", "status": "ok"}

    if pet_bot is not None:
        @app.post(f"/{config.BOT_TOKEN}", include_in_schema=False)
        async def telegram_webhook(request: Request):
            """
            Main webhook for receiving Telegram updates.
            """
            if not pet_bot.application:
                logger.error("Webhook called before the bot was initialized.")
                raise HTTPException(status_code=503, detail="Bot is not ready yet, try again shortly")
            try:
                json_data = await request.json()
                update = Update.de_json(json_data, pet_bot.application.bot)

                async with pet_bot.application:
                    await pet_bot.application.process_update(update)

                return {"status": "ok"}
            except Exception as e:
                logger.error(f"Error processing webhook: {e}")
                return {"status": "error handled"}

    return app


if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=config.PORT)
