"""Domain reputation signal.

Neutral until an external reputation/threat-intel source is wired in. Subclasses
override ``lookup`` and return a scored result; the aggregator needs no change.
"""

from __future__ import annotations

from typing import Optional

from .models import SignalName, SignalResult
from .signals import SignalContext


class ReputationSignal:
    name = SignalName.REPUTATION

    def lookup(self, hostname: str) -> Optional[SignalResult]:
        return None

    def evaluate(self, context: SignalContext) -> SignalResult:
        result = self.lookup(context.page.hostname)
        if result is None:
            return SignalResult.neutral(self.name, checked=False)
        return result
