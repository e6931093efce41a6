"""
Optional Telegram notifications for completed irreversible actions
Send-only; does nothing unless TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID are set
"""

import logging
import os
from datetime import datetime, timezone
from typing import Optional

from telegram import Bot
from telegram.error import BadRequest, Forbidden, NetworkError, TelegramError

logger = logging.getLogger(__name__)

ALERT_EMOJI = {
    "INFO": "ℹ️",
    "WARNING": "⚠️",
    "ERROR": "❌",
    "SUCCESS": "✅",
}


class TelegramNotifier:
    """Posts one message per completed action; failures are logged, never raised"""

    max_message_length = 4096  # Telegram limit

    def __init__(self, bot_token: Optional[str] = None, chat_id: Optional[str] = None):
        self.bot_token = bot_token if bot_token is not None else os.getenv("TELEGRAM_BOT_TOKEN")
        self.chat_id = chat_id if chat_id is not None else os.getenv("TELEGRAM_CHAT_ID")
        self._bot: Optional[Bot] = None

    @property
    def bot(self) -> Optional[Bot]:
        """Lazy initialization, nothing is created for unconfigured notifiers"""
        if self._bot is None and self.bot_token:
            self._bot = Bot(token=self.bot_token)
        return self._bot

    def is_configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    async def send_message(self, text: str) -> bool:
        if not self.is_configured():
            logger.debug("Telegram notifier not configured, skipping message")
            return False

        if len(text) > self.max_message_length:
            text = text[:self.max_message_length - 3] + "..."

        try:
            async with self.bot as bot:
                await bot.send_message(
                    chat_id=self.chat_id,
                    text=text,
                    parse_mode="HTML",
                    disable_web_page_preview=True,
                )
            logger.info("Telegram notification sent")
            return True
        except Forbidden as e:
            logger.warning(f"Bot was blocked or chat not found: {e}")
        except BadRequest as e:
            logger.warning(f"Bad request (invalid message format?): {e}")
        except NetworkError as e:
            logger.warning(f"Network error sending Telegram notification: {e}")
        except TelegramError as e:
            logger.warning(f"Telegram API error: {e}")
        return False

    async def send_alert(self, title: str, message: str, alert_type: str = "INFO") -> bool:
        emoji = ALERT_EMOJI.get(alert_type.upper(), "📢")
        now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        return await self.send_message(f"{emoji} <b>{title}</b>\n\n{message}\n\n<i>Time: {now}</i>")
