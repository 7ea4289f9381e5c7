"""
Known-breach password signal.

Uses the k-anonymity range protocol of the Pwned Passwords service: only the
first five hex characters of the password's SHA-1 digest leave the process.
The service answers with every ``SUFFIX:COUNT`` record sharing that prefix and
the match is done locally.

SHA-1 is deliberate here. This is a lookup key for "already compromised",
not password storage.
"""

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import aiohttp

from ..cache import BoundedTTLCache
from ..constants import PWNED_PASSWORDS_RANGE_URL, USER_AGENT
from ..errors import BreachLookupError
from .models import SignalName, SignalResult

logger = logging.getLogger(__name__)

PREFIX_LENGTH = 5
BREACHED_SCORE = 0.0
CLEAN_SCORE = 80.0


def password_digest(password: str) -> str:
    return hashlib.sha1(password.encode("utf-8")).hexdigest().upper()


def split_digest(digest: str) -> tuple[str, str]:
    return digest[:PREFIX_LENGTH], digest[PREFIX_LENGTH:]


def parse_range_body(body: str) -> Dict[str, int]:
    """Parse ``SUFFIX:COUNT`` lines, skipping anything malformed."""
    records: Dict[str, int] = {}
    for line in (body or "").splitlines():
        line = line.strip()
        if not line or ":" not in line:
            continue
        suffix, _, count = line.partition(":")
        suffix = suffix.strip().upper()
        try:
            int(suffix, 16)
            records[suffix] = int(count.strip())
        except ValueError:
            continue
    return records


@dataclass
class BreachLookup:
    """Result of a range lookup for one password."""

    checked: bool = False
    found: bool = False
    count: int = 0
    error: Optional[str] = None


class PwnedPasswordsClient:
    """
    Async client for the range endpoint.

    Caches nothing unless a ``BoundedTTLCache`` is passed in. A cache holds
    only the public prefix and its suffix records, never a password or digest.
    """

    def __init__(
        self,
        api_url: str = PWNED_PASSWORDS_RANGE_URL,
        timeout: float = 5.0,
        padding: bool = True,
        cache: Optional[BoundedTTLCache] = None,
    ):
        self.api_url = api_url if api_url.endswith("/") else api_url + "/"
        self.timeout = timeout
        self.padding = padding
        self.cache = cache

    async def fetch_range(self, prefix: str) -> Dict[str, int]:
        """Fetch all suffix records sharing ``prefix``."""
        cached = self.cache.get(prefix) if self.cache is not None else None
        if cached is not None:
            return cached

        headers = {"User-Agent": USER_AGENT}
        if self.padding:
            headers["Add-Padding"] = "true"

        url = f"{self.api_url}{prefix}"
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    url, headers=headers, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as resp:
                    if resp.status != 200:
                        raise BreachLookupError(
                            f"Range service returned HTTP {resp.status}", status_code=resp.status
                        )
                    body = await resp.text()
        except asyncio.TimeoutError as exc:
            raise BreachLookupError("Range service timed out") from exc
        except aiohttp.ClientError as exc:
            raise BreachLookupError(f"Range service unreachable: {exc}") from exc

        records = parse_range_body(body)
        if self.cache is not None:
            self.cache.set(prefix, records)
        logger.debug(f"Range lookup for prefix {prefix}: {len(records)} records")
        return records

    async def lookup(self, password: str) -> BreachLookup:
        prefix, suffix = split_digest(password_digest(password))
        try:
            records = await self.fetch_range(prefix)
        except BreachLookupError as exc:
            return BreachLookup(checked=False, error=str(exc))

        # Padding records carry a count of 0 and never denote a real breach
        count = records.get(suffix, 0)
        if count > 0:
            return BreachLookup(checked=True, found=True, count=count)
        return BreachLookup(checked=True, found=False)

    def clear_cache(self) -> None:
        if self.cache is not None:
            self.cache.clear()


class BreachSignal:
    name = SignalName.BREACH

    def __init__(self, client: Optional[PwnedPasswordsClient] = None):
        self.client = client or PwnedPasswordsClient()

    @staticmethod
    def unavailable(error: str) -> SignalResult:
        return SignalResult.neutral(SignalName.BREACH, checked=False, found=False, error=error)

    async def evaluate_password(self, password: str) -> SignalResult:
        if not password:
            return self.unavailable("empty password")

        try:
            lookup = await self.client.lookup(password)
        except Exception as exc:
            logger.warning("Breach check failed: %s", exc)
            return self.unavailable(str(exc))

        if not lookup.checked:
            logger.warning("Breach service unavailable: %s", lookup.error)
            return self.unavailable(lookup.error or "unavailable")

        if lookup.found:
            return SignalResult(
                name=self.name,
                score=BREACHED_SCORE,
                findings=[f"Password found in {lookup.count} data breaches"],
                metadata={"checked": True, "found": True, "count": lookup.count},
            )

        return SignalResult(
            name=self.name,
            score=CLEAN_SCORE,
            metadata={"checked": True, "found": False},
        )
