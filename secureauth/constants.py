"""Default heuristics for SecureAuth."""

from __future__ import annotations

# Known legitimate login domains for major services
DEFAULT_TRUSTED_DOMAINS: tuple[str, ...] = (
    "google.com",
    "microsoft.com",
    "facebook.com",
    "apple.com",
    "github.com",
    "linkedin.com",
    "twitter.com",
    "amazon.com",
    "yahoo.com",
    "dropbox.com",
    "salesforce.com",
)

# TLDs statistically correlated with abuse
DEFAULT_SUSPICIOUS_TLDS: tuple[str, ...] = ("tk", "ml", "ga", "cf", "gq", "xyz", "top")

DEFAULT_SIGNAL_WEIGHTS: dict[str, float] = {
    "domain": 0.30,
    "transport": 0.15,
    "breach": 0.25,
    "form": 0.15,
    "content": 0.10,
    "reputation": 0.05,
}

# (low, medium, high) lower bounds per sensitivity; below the last is CRITICAL
SENSITIVITY_THRESHOLDS: dict[str, tuple[float, float, float]] = {
    "low": (60.0, 30.0, 10.0),
    "medium": (70.0, 40.0, 20.0),
    "high": (80.0, 50.0, 30.0),
}

DEFAULT_CONTENT_PATTERNS: list[dict] = [
    {"all_of": ["verify", "account"], "points": -10, "reason": "Account verification language"},
    {"any_of": ["suspend", "locked"], "points": -15, "reason": "Urgency language detected"},
    {"any_of": ["unusual activity"], "points": -15, "reason": "Security scare tactics"},
]

NEUTRAL_SCORE = 50.0

PWNED_PASSWORDS_RANGE_URL = "https://api.pwnedpasswords.com/range/"
SAFE_BROWSING_REPORT_URL = "https://safebrowsing.google.com/safebrowsing/report_phish/"
USER_AGENT = "SecureAuth-PhishingGuard/1.0"
