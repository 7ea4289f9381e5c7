"""Notify an operator when a login attempt is blocked."""

from __future__ import annotations

import logging

from telegram import Bot
from telegram.error import TelegramError

from ..storage.attempts import BlockedAttempt

logger = logging.getLogger(__name__)


def format_block_message(attempt: BlockedAttempt) -> str:
    return (
        "SecureAuth: Phishing Attempt Blocked\n"
        f"Blocked suspicious login attempt on {attempt.hostname}\n"
        f"Risk: {attempt.risk_level} ({attempt.risk_score:.0f}/100)\n"
        f"URL: {attempt.url}"
    )


class LogNotifier:
    """Fallback when no chat is configured."""

    async def notify_blocked(self, attempt: BlockedAttempt) -> None:
        logger.info("Blocked suspicious login attempt on %s", attempt.hostname)


class TelegramNotifier:
    """Sends block notifications to a Telegram chat."""

    def __init__(self, token: str, chat_id: str, bot: Bot | None = None):
        self.chat_id = chat_id
        self.bot = bot or Bot(token=token)

    async def notify_blocked(self, attempt: BlockedAttempt) -> None:
        try:
            await self.bot.send_message(
                chat_id=self.chat_id,
                text=format_block_message(attempt),
            )
        except TelegramError as exc:
            logger.warning("Telegram notification failed: %s", exc)


def build_notifier(config) -> TelegramNotifier | LogNotifier:
    if config.telegram_bot_token and config.telegram_chat_id:
        return TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id)
    return LogNotifier()
