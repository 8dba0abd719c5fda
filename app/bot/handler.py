from datetime import time
from zoneinfo import ZoneInfo

from loguru import logger
from telegram import Bot, Update
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from app.config import get_settings
from app.core import messages
from app.core.executor import Sender
from app.deps import conversation, executor

settings = get_settings()


def make_sender(bot: Bot) -> Sender:
    """Outbound capability handed to the conversation and the monthly job."""

    async def send(user_id: str, text: str) -> None:
        await bot.send_message(chat_id=user_id, text=text)
        logger.info("Sent to {}: {}", user_id, text)

    return send


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start and /help."""
    await update.message.reply_text(messages.GREETING)


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle incoming text messages, the main conversation entry point."""
    message = update.effective_message
    if message is None or not message.text:
        return
    if update.effective_user is not None and update.effective_user.is_bot:
        return

    user_id = str(update.effective_chat.id)
    await message.chat.send_action("typing")

    try:
        reply = await conversation.handle(user_id, message.text)
    except Exception as e:
        logger.error("Error handling message from {}: {}", user_id, e)
        reply = messages.MODEL_UNAVAILABLE

    if reply:
        await message.reply_text(reply)


async def monthly_report_job(context: ContextTypes.DEFAULT_TYPE):
    """Runs on the first day of each month."""
    await executor.send_monthly_reports(make_sender(context.bot))


async def handle_error(update: object, context: ContextTypes.DEFAULT_TYPE):
    logger.error("Telegram update failed: {}", context.error)


def build_bot_app() -> Application:
    """Build and return the Telegram bot application."""
    app = (
        Application.builder()
        .token(settings.telegram_bot_token)
        .concurrent_updates(True)
        .build()
    )

    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", start_command))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))
    app.add_error_handler(handle_error)

    conversation.set_sender(make_sender(app.bot))

    app.job_queue.run_monthly(
        monthly_report_job,
        when=time(settings.monthly_report_hour, 0, tzinfo=ZoneInfo(settings.timezone)),
        day=1,
        name="monthly_reports",
    )

    return app
