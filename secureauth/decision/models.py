"""Decision data models."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from urllib.parse import quote

from ..analyzer.models import PageContext, RiskAssessment, RiskLevel, SignalName
from ..constants import SAFE_BROWSING_REPORT_URL


class DecisionState(str, Enum):
    """States of a single submission's decision."""

    PENDING = "pending"
    AWAITING_USER_CHOICE = "awaiting_user_choice"
    BLOCKED = "blocked"  # Terminal
    ALLOWED = "allowed"  # Terminal, resumes the submission once


class DecisionOutcome(str, Enum):
    """What the interceptor does with the suspended submission."""

    ALLOW = "allow"
    BLOCK = "block"  # Blocked by policy (HIGH/CRITICAL)
    CANCEL = "cancel"  # Blocked by the user or an expired prompt


class UserChoice(str, Enum):
    PROCEED = "proceed"
    CANCEL = "cancel"

    @classmethod
    def parse(cls, value) -> "UserChoice":
        """Anything other than an explicit proceed counts as cancel."""
        if isinstance(value, cls):
            return value
        if str(value or "").strip().lower() == cls.PROCEED.value:
            return cls.PROCEED
        return cls.CANCEL


@dataclass(frozen=True)
class WarningPayload:
    """What the UI collaborator renders for a warning or a block."""

    level: RiskLevel
    score: int
    findings: tuple[str, ...]
    blocking: bool
    url: str = ""
    hostname: str = ""
    report_url: str = ""

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "score": self.score,
            "findings": list(self.findings),
            "blocking": self.blocking,
            "url": self.url,
            "hostname": self.hostname,
            "report_url": self.report_url,
        }


def report_url_for(url: str) -> str:
    """Safe Browsing phishing report link for a page URL."""
    if not url:
        return ""
    # Same escaping as encodeURIComponent
    return SAFE_BROWSING_REPORT_URL + "?url=" + quote(url, safe="!*'()")


@dataclass
class DecisionResult:
    outcome: DecisionOutcome
    state: DecisionState
    payload: Optional[WarningPayload] = None
    logged: bool = False
    timed_out: bool = False
    history: list[DecisionState] = field(default_factory=list)


def build_payload(assessment: RiskAssessment, page: PageContext, *, blocking: bool) -> WarningPayload:
    """Collect human-readable findings in display order."""
    findings: list[str] = []
    for name in (
        SignalName.DOMAIN,
        SignalName.BREACH,
        SignalName.TRANSPORT,
        SignalName.CONTENT,
        SignalName.FORM,
    ):
        result = assessment.get(name)
        if result is not None:
            findings.extend(result.findings)

    domain = assessment.get(SignalName.DOMAIN)
    if domain is None or not domain.metadata.get("trusted"):
        findings.append("Domain not recognized as a trusted service")

    if not findings:
        findings.append("Multiple risk factors detected")

    return WarningPayload(
        level=assessment.level,
        score=math.floor(assessment.overall + 0.5),
        findings=tuple(findings),
        blocking=blocking,
        url=page.url,
        hostname=page.hostname,
        report_url=report_url_for(page.url) if blocking else "",
    )
