"""Configuration management for SecureAuth."""

import logging
import math
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from .constants import (
    DEFAULT_CONTENT_PATTERNS,
    DEFAULT_SIGNAL_WEIGHTS,
    DEFAULT_SUSPICIOUS_TLDS,
    DEFAULT_TRUSTED_DOMAINS,
    PWNED_PASSWORDS_RANGE_URL,
)
from .utils.domains import normalize_trusted_domains

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class Sensitivity(str, Enum):
    """How aggressively risk levels escalate."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class Config:
    """Application configuration."""

    # Settings surface (shared with the settings UI)
    enable_protection: bool = True
    enable_notifications: bool = True
    enable_breach_check: bool = True
    sensitivity: Sensitivity = Sensitivity.MEDIUM

    # Breach-range service
    breach_api_url: str = PWNED_PASSWORDS_RANGE_URL
    breach_timeout: float = 5.0
    breach_padding: bool = True
    # Optional range cache; 0 disables it
    breach_cache_ttl: float = 0.0
    breach_cache_size: int = 1024

    # Seconds to wait for the user before a warning defaults to blocked
    choice_timeout: float = 120.0

    # Blocked-attempt history
    history_limit: int = 100
    history_retention_days: int = 7

    # Notifications (optional)
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    # Paths
    data_dir: Path = field(default_factory=lambda: Path("./data"))
    config_dir: Path = field(default_factory=lambda: Path("./config"))

    # Heuristics (override via config/heuristics.yaml)
    trusted_domains: frozenset[str] = field(
        default_factory=lambda: normalize_trusted_domains(DEFAULT_TRUSTED_DOMAINS)
    )
    suspicious_tlds: frozenset[str] = field(
        default_factory=lambda: frozenset(DEFAULT_SUSPICIOUS_TLDS)
    )
    content_patterns: list[dict] = field(
        default_factory=lambda: [dict(p) for p in DEFAULT_CONTENT_PATTERNS]
    )
    signal_weights: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_SIGNAL_WEIGHTS)
    )

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.config_dir = Path(self.config_dir)
        self.trusted_domains = normalize_trusted_domains(self.trusted_domains)
        self.suspicious_tlds = normalize_tlds(self.suspicious_tlds)
        self.sensitivity = coerce_sensitivity(self.sensitivity)

    @property
    def database_path(self) -> Path:
        return self.data_dir / "secureauth.db"

    def apply_settings(self, settings: dict) -> "Config":
        """Apply the settings collaborator's payload (camelCase keys)."""
        if not isinstance(settings, dict):
            logger.warning("Ignoring settings payload of type %s", type(settings).__name__)
            return self
        mapping = {
            "enableProtection": "enable_protection",
            "enableNotifications": "enable_notifications",
            "enableBreachCheck": "enable_breach_check",
        }
        for key, attr in mapping.items():
            if key in settings:
                setattr(self, attr, coerce_bool(settings[key], getattr(self, attr), key))
        if "sensitivity" in settings:
            self.sensitivity = coerce_sensitivity(settings["sensitivity"])
        return self

    def to_settings(self) -> dict:
        return {
            "enableProtection": self.enable_protection,
            "enableNotifications": self.enable_notifications,
            "enableBreachCheck": self.enable_breach_check,
            "sensitivity": self.sensitivity.value,
        }


def coerce_bool(value: Any, default: bool, name: str = "value") -> bool:
    """Parse a boolean setting, falling back to the default on garbage."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    logger.warning("Invalid boolean for %s: %r (using %s)", name, value, default)
    return default


def _scalar_entries(values, kind: str) -> list:
    entries = []
    for value in values or []:
        if value is None or isinstance(value, (dict, list, tuple, set)):
            logger.warning("Ignoring %s entry %r", kind, value)
            continue
        entries.append(value)
    return entries


def normalize_tlds(values) -> frozenset[str]:
    """Lowercase TLD entries without a leading dot, dropping blanks and non-scalars."""
    tlds = set()
    for value in _scalar_entries(values, "suspicious TLD"):
        tld = str(value).strip().lower().lstrip(".")
        if tld:
            tlds.add(tld)
    return frozenset(tlds)


def coerce_sensitivity(value: Any) -> Sensitivity:
    if isinstance(value, Sensitivity):
        return value
    try:
        return Sensitivity(str(value).strip().lower())
    except ValueError:
        logger.warning("Unknown sensitivity %r (using medium)", value)
        return Sensitivity.MEDIUM


def _coerce_number(value: Any, default: float, name: str, *, minimum: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid number for %s: %r (using %s)", name, value, default)
        return default
    if not math.isfinite(number):
        logger.warning("%s must be a finite number, got %s (using %s)", name, number, default)
        return default
    if number < minimum:
        logger.warning("%s must be >= %s, got %s (using %s)", name, minimum, number, default)
        return default
    return number


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except Exception as exc:
        logger.warning("Failed to parse %s: %s", path.name, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a mapping", path.name)
        return {}
    return data


def _load_list_file(path: Path) -> set[str]:
    """Load a list file, ignoring comments and empty lines."""
    items = set()
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                items.add(line.lower())
    return items


def _coerce_content_patterns(raw, default):
    items: list[dict] = []
    for entry in raw or []:
        if not isinstance(entry, dict):
            continue
        all_of = [str(t).lower() for t in entry.get("all_of") or [] if str(t).strip()]
        any_of = [str(t).lower() for t in entry.get("any_of") or [] if str(t).strip()]
        if not all_of and not any_of:
            continue
        try:
            points = int(entry.get("points"))
        except Exception:
            continue
        reason = str(entry.get("reason") or "").strip() or "Suspicious page language"
        items.append({"all_of": all_of, "any_of": any_of, "points": points, "reason": reason})
    return items or default


def _coerce_weights(raw, default):
    if not isinstance(raw, dict):
        return default
    weights = dict(default)
    for key, value in raw.items():
        if key not in weights:
            logger.warning("Unknown signal weight %r ignored", key)
            continue
        weights[key] = _coerce_number(value, default[key], f"weight {key}")
    if sum(weights.values()) <= 0:
        logger.warning("Signal weights sum to zero; using defaults")
        return default
    return weights


def _load_heuristics(config_dir: Path) -> dict:
    """Load heuristic overrides from config/heuristics.yaml (optional)."""
    data = _load_yaml(Path(config_dir or ".") / "heuristics.yaml")
    domain_cfg = data.get("domain", {}) if isinstance(data.get("domain"), dict) else {}
    content_cfg = data.get("content", {}) if isinstance(data.get("content"), dict) else {}

    trusted = domain_cfg.get("trusted_domains")
    tlds = domain_cfg.get("suspicious_tlds")
    return {
        "trusted_domains": _scalar_entries(trusted, "trusted domain") if isinstance(trusted, list) else None,
        "suspicious_tlds": normalize_tlds(tlds) if isinstance(tlds, list) else None,
        "content_patterns": _coerce_content_patterns(
            content_cfg.get("patterns"), [dict(p) for p in DEFAULT_CONTENT_PATTERNS]
        ),
        "signal_weights": _coerce_weights(data.get("weights"), dict(DEFAULT_SIGNAL_WEIGHTS)),
    }


def load_config(config_dir: Optional[Path] = None) -> Config:
    """Load configuration from environment variables and config files."""
    load_dotenv()

    config_dir = Path(config_dir or os.getenv("CONFIG_DIR", "./config"))
    heuristics = _load_heuristics(config_dir)

    trusted = set(heuristics.get("trusted_domains") or DEFAULT_TRUSTED_DOMAINS)
    allowlist_path = config_dir / "allowlist.txt"
    if allowlist_path.exists():
        trusted |= _load_list_file(allowlist_path)

    config = Config(
        enable_protection=coerce_bool(os.getenv("ENABLE_PROTECTION", "true"), True, "ENABLE_PROTECTION"),
        enable_notifications=coerce_bool(
            os.getenv("ENABLE_NOTIFICATIONS", "true"), True, "ENABLE_NOTIFICATIONS"
        ),
        enable_breach_check=coerce_bool(
            os.getenv("ENABLE_BREACH_CHECK", "true"), True, "ENABLE_BREACH_CHECK"
        ),
        sensitivity=coerce_sensitivity(os.getenv("SENSITIVITY", "medium")),
        breach_api_url=os.getenv("BREACH_API_URL", PWNED_PASSWORDS_RANGE_URL),
        breach_timeout=_coerce_number(os.getenv("BREACH_TIMEOUT", "5"), 5.0, "BREACH_TIMEOUT"),
        breach_cache_ttl=_coerce_number(os.getenv("BREACH_CACHE_TTL", "0"), 0.0, "BREACH_CACHE_TTL"),
        breach_cache_size=int(
            _coerce_number(os.getenv("BREACH_CACHE_SIZE", "1024"), 1024, "BREACH_CACHE_SIZE", minimum=1)
        ),
        choice_timeout=_coerce_number(os.getenv("CHOICE_TIMEOUT", "120"), 120.0, "CHOICE_TIMEOUT"),
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID", ""),
        data_dir=Path(os.getenv("DATA_DIR", "./data")),
        config_dir=config_dir,
        trusted_domains=frozenset(trusted),
        suspicious_tlds=frozenset(heuristics.get("suspicious_tlds") or DEFAULT_SUSPICIOUS_TLDS),
        content_patterns=heuristics["content_patterns"],
        signal_weights=heuristics["signal_weights"],
    )

    settings = _load_yaml(config_dir / "settings.yaml")
    if settings:
        config.apply_settings(settings)

    return config
