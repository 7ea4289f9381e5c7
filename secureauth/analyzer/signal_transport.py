"""Secure transport signal."""

from __future__ import annotations

from .models import SignalName, SignalResult
from .signals import SignalContext

SECURE_SCORE = 70.0
INSECURE_SCORE = 10.0


class TransportSignal:
    name = SignalName.TRANSPORT

    def score_scheme(self, scheme: str) -> SignalResult:
        secure = (scheme or "").lower().rstrip(":") == "https"
        if secure:
            return SignalResult(name=self.name, score=SECURE_SCORE, metadata={"secure": True})
        return SignalResult(
            name=self.name,
            score=INSECURE_SCORE,
            findings=["Not using HTTPS - highly suspicious for a login form"],
            metadata={"secure": False},
        )

    def evaluate(self, context: SignalContext) -> SignalResult:
        return self.score_scheme(context.page.scheme)
