"""Analysis engine: runs every signal for one submission and aggregates."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..analyzer.aggregator import RiskAggregator
from ..analyzer.models import CredentialSubmission, RiskAssessment, SignalName, SignalResult
from ..analyzer.signal_breach import BreachSignal, PwnedPasswordsClient
from ..analyzer.signal_content import ContentSignal
from ..analyzer.signal_domain import DomainSignal
from ..analyzer.signal_form import FormSignal
from ..analyzer.signal_reputation import ReputationSignal
from ..analyzer.signal_transport import TransportSignal
from ..analyzer.signals import Signal, SignalContext
from ..cache import BoundedTTLCache
from ..config import Config

logger = logging.getLogger(__name__)

# Extra time on top of the HTTP timeout before the breach task is abandoned
BREACH_GRACE_SECONDS = 1.0


def build_range_cache(config: Config) -> Optional[BoundedTTLCache]:
    if config.breach_cache_ttl <= 0 or config.breach_cache_size <= 0:
        return None
    return BoundedTTLCache(
        max_entries=config.breach_cache_size, ttl_seconds=config.breach_cache_ttl
    )


class AnalysisEngine:
    """
    Encapsulates submission analysis.

    Holds no cross-submission state, except an optional bounded range cache
    when ``breach_cache_ttl`` is positive. That cache keeps only public digest
    prefixes and their suffix records.
    """

    def __init__(
        self,
        *,
        config: Config,
        signals: Optional[list[Signal]] = None,
        breach: Optional[BreachSignal] = None,
        aggregator: Optional[RiskAggregator] = None,
    ):
        self.config = config
        self.signals: list[Signal] = signals if signals is not None else [
            DomainSignal(config.trusted_domains, config.suspicious_tlds),
            TransportSignal(),
            FormSignal(config.trusted_domains),
            ContentSignal(config.content_patterns),
            ReputationSignal(),
        ]
        self.breach = breach or BreachSignal(
            PwnedPasswordsClient(
                api_url=config.breach_api_url,
                timeout=config.breach_timeout,
                padding=config.breach_padding,
                cache=build_range_cache(config),
            )
        )
        self.aggregator = aggregator or RiskAggregator(
            weights=config.signal_weights, sensitivity=config.sensitivity
        )

    def _run_signal(self, signal: Signal, context: SignalContext) -> SignalResult:
        try:
            return signal.evaluate(context)
        except Exception as exc:
            logger.warning(
                "Signal %s failed for %s: %s", signal.name.value, context.page.hostname, exc
            )
            return SignalResult.neutral(signal.name, error=str(exc))

    async def _run_breach(self, task: asyncio.Task) -> SignalResult:
        timeout = self.config.breach_timeout + BREACH_GRACE_SECONDS
        try:
            return await asyncio.wait_for(task, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Breach check timed out after %.1fs", timeout)
            return BreachSignal.unavailable("timeout")
        except Exception as exc:
            logger.warning("Breach check failed: %s", exc)
            return BreachSignal.unavailable(str(exc))

    async def assess(self, submission: CredentialSubmission) -> RiskAssessment:
        """Score a submission. Consumes it; a second call raises."""
        password, _identifier = submission.consume()
        context = SignalContext(page=submission.page, form=submission.form)

        breach_task: Optional[asyncio.Task] = None
        if self.config.enable_breach_check:
            breach_task = asyncio.ensure_future(self.breach.evaluate_password(password))
        del password

        results: dict[SignalName, SignalResult] = {}
        for signal in self.signals:
            results[signal.name] = self._run_signal(signal, context)

        if breach_task is not None:
            results[SignalName.BREACH] = await self._run_breach(breach_task)

        assessment = self.aggregator.aggregate(results)
        logger.info(
            "Assessed %s: %s (%.2f)",
            submission.page.hostname,
            assessment.level.value,
            assessment.overall,
        )
        return assessment
