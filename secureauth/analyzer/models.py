"""Analyzer data models."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

from ..constants import NEUTRAL_SCORE
from ..errors import SubmissionConsumedError


class SignalName(str, Enum):
    """Independent phishing indicators scored per submission."""

    DOMAIN = "domain"
    TRANSPORT = "transport"
    BREACH = "breach"
    FORM = "form"
    CONTENT = "content"
    REPUTATION = "reputation"


class RiskLevel(str, Enum):
    """Discrete risk classification of an overall score."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


def clamp_score(value: float) -> float:
    """Clamp to [0, 100]. NaN and infinities count as neutral, never as trusted."""
    value = float(value)
    if not math.isfinite(value):
        return NEUTRAL_SCORE
    return max(0.0, min(100.0, value))


@dataclass(frozen=True)
class SignalResult:
    """Score produced by a single signal."""

    name: SignalName
    score: float
    findings: tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)
    raw_score: Optional[float] = None

    def __post_init__(self):
        raw = float(self.score)
        object.__setattr__(self, "name", SignalName(self.name))
        object.__setattr__(self, "raw_score", raw if self.raw_score is None else float(self.raw_score))
        object.__setattr__(self, "score", clamp_score(raw))
        object.__setattr__(self, "findings", tuple(self.findings))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @classmethod
    def neutral(cls, name: SignalName, **metadata: Any) -> "SignalResult":
        return cls(name=name, score=NEUTRAL_SCORE, metadata=metadata)

    def to_dict(self) -> dict:
        return {
            "name": self.name.value,
            "score": self.score,
            "raw_score": self.raw_score,
            "findings": list(self.findings),
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class RiskAssessment:
    """Aggregate verdict over all signals for one submission."""

    signals: Mapping[SignalName, SignalResult]
    overall: float
    level: RiskLevel
    excluded: frozenset[SignalName] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "signals", MappingProxyType(dict(self.signals)))
        object.__setattr__(self, "excluded", frozenset(self.excluded))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RiskAssessment):
            return NotImplemented
        return (
            dict(self.signals) == dict(other.signals)
            and self.overall == other.overall
            and self.level == other.level
            and self.excluded == other.excluded
        )

    def __hash__(self) -> int:
        return hash((self.overall, self.level, tuple(sorted(self.signals))))

    def get(self, name: SignalName) -> Optional[SignalResult]:
        return self.signals.get(name)

    def to_dict(self) -> dict:
        return {
            "overall": self.overall,
            "level": self.level.value,
            "excluded": sorted(s.value for s in self.excluded),
            "signals": {name.value: result.to_dict() for name, result in self.signals.items()},
        }


@dataclass
class PageContext:
    """The page a login form was submitted from."""

    url: str
    visible_text: str = ""
    frame_count: int = 0

    @property
    def hostname(self) -> str:
        try:
            return (urlparse(self.url).hostname or "").lower()
        except ValueError:
            return ""

    @property
    def scheme(self) -> str:
        try:
            return (urlparse(self.url).scheme or "").lower()
        except ValueError:
            return ""

    @classmethod
    def from_dict(cls, data: dict) -> "PageContext":
        try:
            frames = int(data.get("frameCount", data.get("frame_count", 0)) or 0)
        except (TypeError, ValueError):
            frames = 0
        return cls(
            url=str(data.get("url") or ""),
            visible_text=str(data.get("text", data.get("visible_text", "")) or ""),
            frame_count=frames,
        )


@dataclass
class FormField:
    """An <input> inside a form, in document order."""

    type: str = "text"
    name: str = ""
    id: str = ""
    autocomplete: str = ""
    value: str = ""

    def __repr__(self) -> str:
        # Never leak field values into logs/tracebacks
        return f"FormField(type={self.type!r}, name={self.name!r}, id={self.id!r})"


@dataclass
class FormLabel:
    text: str = ""
    for_id: str = ""


@dataclass
class FormSnapshot:
    """Structural view of a submitted form."""

    key: str = ""
    action: str = ""
    fields: list[FormField] = field(default_factory=list)
    labels: list[FormLabel] = field(default_factory=list)
    links: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "FormSnapshot":
        fields = [
            FormField(
                type=str(f.get("type") or "text").lower(),
                name=str(f.get("name") or ""),
                id=str(f.get("id") or ""),
                autocomplete=str(f.get("autocomplete") or "").lower(),
                value=str(f.get("value") or ""),
            )
            for f in data.get("fields") or []
            if isinstance(f, dict)
        ]
        labels = [
            FormLabel(text=str(lbl.get("text") or ""), for_id=str(lbl.get("for") or ""))
            for lbl in data.get("labels") or []
            if isinstance(lbl, dict)
        ]
        links = [str(link) for link in data.get("links") or [] if link is not None]
        return cls(
            key=str(data.get("key") or ""),
            action=str(data.get("action") or ""),
            fields=fields,
            labels=labels,
            links=links,
        )

    def password_field(self) -> Optional[FormField]:
        for f in self.fields:
            if f.type == "password":
                return f
        return None

    def label_for(self, field_id: str) -> Optional[FormLabel]:
        if not field_id:
            return None
        for label in self.labels:
            if label.for_id == field_id:
                return label
        return None


class CredentialSubmission:
    """A recognized login submission. Consumed exactly once by analysis."""

    def __init__(self, password: str, identifier: str, form: FormSnapshot, page: PageContext):
        self._password = password
        self._identifier = identifier
        self.form = form
        self.page = page
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    def consume(self) -> tuple[str, str]:
        """Hand out the credential values; a second call raises."""
        if self._consumed:
            raise SubmissionConsumedError(
                f"Submission for {self.page.hostname or 'unknown host'} already analyzed"
            )
        self._consumed = True
        password, identifier = self._password, self._identifier
        self._password = ""
        self._identifier = ""
        return password, identifier

    def __repr__(self) -> str:
        return f"CredentialSubmission(host={self.page.hostname!r}, form={self.form.key!r})"
