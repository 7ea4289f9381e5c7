"""Single-resolution channel for a user's warn-with-choice answer."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .models import UserChoice

logger = logging.getLogger(__name__)


class ChoicePrompt:
    """
    Wraps one future that the UI resolves with proceed or cancel.

    The first resolution wins; later calls are ignored. The policy cancels the
    prompt when it stops waiting (timeout), after which resolving is a no-op.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future[UserChoice] = self._loop.create_future()

    @property
    def done(self) -> bool:
        return self._future.done()

    def resolve(self, choice) -> bool:
        """Resolve with ``proceed``/``cancel``. Returns False if already settled."""
        if self._future.done():
            logger.debug("Ignoring late user choice: %s", choice)
            return False
        self._future.set_result(UserChoice.parse(choice))
        return True

    def cancel(self) -> None:
        if not self._future.done():
            self._future.cancel()

    async def wait(self) -> UserChoice:
        return await asyncio.shield(self._future)
