"""Block notifications for SecureAuth."""

from .telegram import LogNotifier, TelegramNotifier, build_notifier

__all__ = ["LogNotifier", "TelegramNotifier", "build_notifier"]
