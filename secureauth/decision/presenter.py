"""Terminal presenter for the CLI."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from .models import UserChoice, WarningPayload
from .prompt import ChoicePrompt

logger = logging.getLogger(__name__)


def format_payload(payload: WarningPayload) -> str:
    title = "PHISHING ATTEMPT BLOCKED" if payload.blocking else "Security Warning"
    lines = [
        title,
        f"  Site: {payload.hostname or payload.url}",
        f"  Risk Level: {payload.level.value}",
        f"  Score: {payload.score}/100",
        "  Issues:",
    ]
    lines.extend(f"    - {finding}" for finding in payload.findings)
    if payload.report_url:
        lines.append(f"  Report phishing: {payload.report_url}")
    return "\n".join(lines)


class ConsolePresenter:
    """Prints warnings and asks proceed/cancel on stdin."""

    def __init__(self, output: Callable[[str], None] = print, reader: Optional[Callable[[str], str]] = None):
        self.output = output
        self.reader = reader or input

    def show_block(self, payload: WarningPayload) -> None:
        self.output(format_payload(payload))

    def show_failure(self, message: str) -> None:
        self.output(f"SecureAuth: {message}")

    async def request_choice(self, payload: WarningPayload, prompt: ChoicePrompt) -> None:
        self.output(format_payload(payload))
        loop = asyncio.get_running_loop()
        try:
            answer = await loop.run_in_executor(None, self.reader, "Proceed anyway? [y/N] ")
        except (EOFError, KeyboardInterrupt):
            answer = ""
        choice = UserChoice.PROCEED if answer.strip().lower() in {"y", "yes"} else UserChoice.CANCEL
        prompt.resolve(choice)
