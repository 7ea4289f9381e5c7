"""Urgency and scare-tactic language in visible page text."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..constants import DEFAULT_CONTENT_PATTERNS, NEUTRAL_SCORE
from .models import SignalName, SignalResult
from .signals import SignalContext


@dataclass(frozen=True)
class ContentPattern:
    """Matches when every ``all_of`` term and at least one ``any_of`` term appear."""

    points: int
    reason: str
    all_of: tuple[str, ...] = field(default_factory=tuple)
    any_of: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict) -> "ContentPattern":
        return cls(
            points=int(data.get("points", 0)),
            reason=str(data.get("reason") or "Suspicious page language"),
            all_of=tuple(str(t).lower() for t in data.get("all_of") or []),
            any_of=tuple(str(t).lower() for t in data.get("any_of") or []),
        )

    def matches(self, text_lower: str) -> bool:
        if not self.all_of and not self.any_of:
            return False
        if any(term not in text_lower for term in self.all_of):
            return False
        if self.any_of and not any(term in text_lower for term in self.any_of):
            return False
        return True


class ContentSignal:
    name = SignalName.CONTENT

    def __init__(self, patterns: Optional[Iterable[ContentPattern | dict]] = None):
        raw = DEFAULT_CONTENT_PATTERNS if patterns is None else patterns
        self.patterns = [p if isinstance(p, ContentPattern) else ContentPattern.from_dict(p) for p in raw]

    def score_text(self, text: str) -> SignalResult:
        text_lower = (text or "").lower()
        score = NEUTRAL_SCORE
        findings: list[str] = []
        for pattern in self.patterns:
            if pattern.matches(text_lower):
                score += pattern.points
                findings.append(pattern.reason)
        return SignalResult(name=self.name, score=score, findings=findings)

    def evaluate(self, context: SignalContext) -> SignalResult:
        return self.score_text(context.page.visible_text)
