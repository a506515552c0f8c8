"""
Webhook Endpoint for Telegram Bots.

Every registered bot delivers its updates to `{webhook_path}/{token}`; the
token in the path selects the bot whose menu answers the update.
"""

import hmac

from aiogram.types import Update
from fastapi import APIRouter, Request, Response

from botbuilder.backend.core.config import get_app_config
from botbuilder.backend.core.dependencies import DbSession, MenuTexts, Transport, WebhookSecret
from botbuilder.backend.core.exceptions import NotFoundError
from botbuilder.backend.core.logging import get_logger
from botbuilder.backend.services.conversation import SqlConversationStore
from botbuilder.telegram.dispatcher import UpdateDispatcher
from botbuilder.telegram.transport import token_label

logger = get_logger(__name__)

TELEGRAM_SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


def get_webhook_router() -> APIRouter:
    """
    Create a FastAPI router for Telegram webhook requests.

    The path prefix comes from application.yaml (telegram.webhook_path).

    Usage:
        from botbuilder.telegram.webhook import get_webhook_router

        app.include_router(get_webhook_router())
    """
    router = APIRouter(tags=["telegram"])
    webhook_path = get_app_config().application.telegram.webhook_path.rstrip("/")

    @router.post(webhook_path + "/{token}", response_model=None)
    async def telegram_webhook(
        token: str,
        request: Request,
        db: DbSession,
        transport: Transport,
        texts: MenuTexts,
        webhook_secret: WebhookSecret,
    ) -> Response | dict[str, bool]:
        """
        Handle one update for the bot identified by `token`.

        Unknown tokens get a 404. Once the bot is found the endpoint always
        answers 200, so Telegram does not redeliver updates that failed.
        """
        if webhook_secret:
            secret_header = request.headers.get(TELEGRAM_SECRET_HEADER)
            if not secret_header or not hmac.compare_digest(secret_header, webhook_secret):
                logger.warning(
                    "Invalid webhook secret token",
                    extra={"client_ip": request.client.host if request.client else None},
                )
                return Response(status_code=403)

        store = SqlConversationStore(db)
        bot = await store.get_bot(token)
        if bot is None:
            logger.warning("Update for unknown bot", extra={"bot": token_label(token)})
            raise NotFoundError("Bot not found")

        if not bot.is_active:
            logger.info("Ignoring update for inactive bot", extra={"bot_id": bot.id})
            return {"ok": True}

        try:
            update = Update.model_validate(await request.json())

            logger.debug(
                "Received Telegram update",
                extra={
                    "bot_id": bot.id,
                    "update_id": update.update_id,
                },
            )

            await UpdateDispatcher(transport, store, texts).dispatch(bot, update)
            await db.commit()

        except Exception as e:
            await db.rollback()
            logger.error(
                "Error processing Telegram update",
                extra={"bot_id": bot.id, "error": str(e)},
                exc_info=True,
            )

        return {"ok": True}

    return router
