"""Origin scoring: trust list, keywords, homographs, TLD and scheme."""

from __future__ import annotations

import unicodedata
from typing import Iterable

from ..config import normalize_tlds
from ..constants import DEFAULT_SUSPICIOUS_TLDS, DEFAULT_TRUSTED_DOMAINS, NEUTRAL_SCORE
from ..utils.domains import decode_host, host_tld, normalize_trusted_domains, trusted_match
from .models import SignalName, SignalResult
from .signals import SignalContext

SECURE_SCHEME = "https"
TRUSTED_SCORE = 90.0

# Non-Latin characters that look like Latin
HOMOGLYPHS = {
    "а": "a",  # Cyrillic а
    "е": "e",  # Cyrillic е
    "о": "o",  # Cyrillic о
    "р": "p",  # Cyrillic р
    "с": "c",  # Cyrillic с
    "у": "y",  # Cyrillic у
    "х": "x",  # Cyrillic х
    "ѕ": "s",  # Cyrillic ѕ
    "і": "i",  # Cyrillic і
    "ј": "j",  # Cyrillic ј
    "ԁ": "d",  # Cyrillic ԁ
    "ɡ": "g",  # Latin script g
    "ο": "o",  # Greek omicron
    "α": "a",  # Greek alpha
    "ո": "n",  # Armenian ո
    "ս": "u",  # Armenian ս
}

_FOREIGN_SCRIPTS = ("CYRILLIC", "GREEK", "ARMENIAN")

# (token, points, finding)
KEYWORD_DEDUCTIONS: tuple[tuple[str, int, str], ...] = (
    ("login", 20, 'Contains "login" in domain'),
    ("secure", 15, 'Contains "secure" in domain'),
)


def contains_homographs(host: str) -> bool:
    """Check for look-alike letters from a non-Latin alphabet."""
    for char in decode_host(host):
        if char.isascii():
            continue
        if char in HOMOGLYPHS:
            return True
        name = unicodedata.name(char, "")
        if name.startswith(_FOREIGN_SCRIPTS):
            return True
    return False


class DomainSignal:
    name = SignalName.DOMAIN

    def __init__(
        self,
        trusted_domains: Iterable[str] = DEFAULT_TRUSTED_DOMAINS,
        suspicious_tlds: Iterable[str] = DEFAULT_SUSPICIOUS_TLDS,
    ):
        self.trusted_domains = normalize_trusted_domains(trusted_domains)
        self.suspicious_tlds = normalize_tlds(suspicious_tlds)

    def score_host(self, hostname: str, scheme: str) -> SignalResult:
        host = (hostname or "").strip().lower().rstrip(".")
        scheme = (scheme or "").lower().rstrip(":")

        entry = trusted_match(host, self.trusted_domains)
        if entry:
            return SignalResult(
                name=self.name,
                score=TRUSTED_SCORE,
                metadata={"trusted": True, "trusted_entry": entry, "hostname": host},
            )

        score = NEUTRAL_SCORE
        findings: list[str] = []

        for token, points, finding in KEYWORD_DEDUCTIONS:
            if token in host:
                score -= points
                findings.append(finding)

        if contains_homographs(host):
            score -= 30
            findings.append("Possible homograph attack detected")

        tld = host_tld(host)
        if tld in self.suspicious_tlds:
            score -= 25
            findings.append(f"Suspicious TLD: {tld}")

        if scheme != SECURE_SCHEME:
            score -= 40
            findings.append("Not using HTTPS")

        return SignalResult(
            name=self.name,
            score=score,
            findings=findings,
            metadata={"trusted": False, "hostname": host, "tld": tld},
        )

    def evaluate(self, context: SignalContext) -> SignalResult:
        return self.score_host(context.page.hostname, context.page.scheme)
