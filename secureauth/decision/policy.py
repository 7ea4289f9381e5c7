"""Decision policy: turns a risk verdict into block, warn-with-choice or allow."""

from __future__ import annotations

import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import Optional, Protocol

from ..analyzer.models import PageContext, RiskAssessment, RiskLevel
from ..errors import InvalidTransitionError
from ..storage.attempts import BlockedAttempt, Statistic
from .models import (
    DecisionOutcome,
    DecisionResult,
    DecisionState,
    UserChoice,
    WarningPayload,
    build_payload,
)
from .prompt import ChoicePrompt

logger = logging.getLogger(__name__)

TRANSITIONS: dict[DecisionState, frozenset[DecisionState]] = {
    DecisionState.PENDING: frozenset(
        {DecisionState.BLOCKED, DecisionState.AWAITING_USER_CHOICE, DecisionState.ALLOWED}
    ),
    DecisionState.AWAITING_USER_CHOICE: frozenset({DecisionState.ALLOWED, DecisionState.BLOCKED}),
    DecisionState.BLOCKED: frozenset(),
    DecisionState.ALLOWED: frozenset(),
}


class Presenter(Protocol):
    """UI collaborator. Renders payloads; never receives markup from the engine."""

    def show_block(self, payload: WarningPayload): ...

    def request_choice(self, payload: WarningPayload, prompt: ChoicePrompt): ...

    def show_failure(self, message: str): ...


class AttemptRecorder(Protocol):
    """Storage collaborator for blocked attempts and counters."""

    async def log_blocked_attempt(self, attempt: BlockedAttempt) -> None: ...

    async def increment(self, stat: Statistic) -> None: ...


class Notifier(Protocol):
    async def notify_blocked(self, attempt: BlockedAttempt) -> None: ...


async def maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


class Decision:
    """State holder for one submission. Only legal transitions are accepted."""

    def __init__(self):
        self.state = DecisionState.PENDING
        self.history: list[DecisionState] = [DecisionState.PENDING]

    @property
    def terminal(self) -> bool:
        return not TRANSITIONS[self.state]

    def transition(self, target: DecisionState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransitionError(self.state.value, target.value)
        logger.debug("Decision %s -> %s", self.state.value, target.value)
        self.state = target
        self.history.append(target)


class DecisionPolicy:
    """
    State machine over one RiskAssessment.

    CRITICAL/HIGH block immediately and are logged. MEDIUM waits for the
    user's choice (bounded by ``choice_timeout``; expiry blocks). LOW allows.
    A user cancel is an override, not a confirmed phish, so it is not logged.
    """

    def __init__(
        self,
        presenter: Presenter,
        recorder: Optional[AttemptRecorder] = None,
        notifier: Optional[Notifier] = None,
        *,
        choice_timeout: float = 120.0,
        enable_notifications: bool = True,
    ):
        self.presenter = presenter
        self.recorder = recorder
        self.notifier = notifier
        self.choice_timeout = choice_timeout
        self.enable_notifications = enable_notifications

    async def decide(self, assessment: RiskAssessment, page: PageContext) -> DecisionResult:
        decision = Decision()
        await self._record(Statistic.TOTAL_SCANS)

        if assessment.level in (RiskLevel.CRITICAL, RiskLevel.HIGH):
            return await self._block(decision, assessment, page)

        if assessment.level == RiskLevel.MEDIUM:
            return await self._ask(decision, assessment, page)

        decision.transition(DecisionState.ALLOWED)
        await self._record(Statistic.ALLOWED_LOGINS)
        logger.info("Allowing login on %s (score %.1f)", page.hostname, assessment.overall)
        return DecisionResult(
            outcome=DecisionOutcome.ALLOW, state=decision.state, history=decision.history
        )

    async def _block(
        self, decision: Decision, assessment: RiskAssessment, page: PageContext
    ) -> DecisionResult:
        decision.transition(DecisionState.BLOCKED)
        payload = build_payload(assessment, page, blocking=True)
        logger.warning(
            "Blocked %s login on %s (score %.1f)",
            assessment.level.value,
            page.hostname,
            assessment.overall,
        )

        try:
            await maybe_await(self.presenter.show_block(payload))
        except Exception as exc:
            logger.error("Presenter failed to show block for %s: %s", page.hostname, exc)

        attempt = BlockedAttempt(
            timestamp=datetime.now(timezone.utc).isoformat(),
            url=page.url,
            hostname=page.hostname,
            risk_score=assessment.overall,
            risk_level=assessment.level.value,
        )
        logged = await self._log(attempt)
        return DecisionResult(
            outcome=DecisionOutcome.BLOCK,
            state=decision.state,
            payload=payload,
            logged=logged,
            history=decision.history,
        )

    async def _ask(
        self, decision: Decision, assessment: RiskAssessment, page: PageContext
    ) -> DecisionResult:
        decision.transition(DecisionState.AWAITING_USER_CHOICE)
        payload = build_payload(assessment, page, blocking=False)
        prompt = ChoicePrompt()
        await self._record(Statistic.WARNINGS_SHOWN)

        async def wait_for_choice() -> UserChoice:
            await maybe_await(self.presenter.request_choice(payload, prompt))
            return await prompt.wait()

        timed_out = False
        try:
            choice = await asyncio.wait_for(wait_for_choice(), timeout=self.choice_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "No answer to warning on %s after %ss; blocking", page.hostname, self.choice_timeout
            )
            timed_out = True
            choice = UserChoice.CANCEL
        except Exception as exc:
            logger.error("Presenter failed to ask about %s: %s", page.hostname, exc)
            choice = UserChoice.CANCEL
        finally:
            prompt.cancel()

        if choice is UserChoice.PROCEED:
            decision.transition(DecisionState.ALLOWED)
            await self._record(Statistic.ALLOWED_LOGINS)
            logger.info("User chose to proceed on %s", page.hostname)
            return DecisionResult(
                outcome=DecisionOutcome.ALLOW,
                state=decision.state,
                payload=payload,
                history=decision.history,
            )

        decision.transition(DecisionState.BLOCKED)
        logger.info("User cancelled login on %s", page.hostname)
        return DecisionResult(
            outcome=DecisionOutcome.CANCEL,
            state=decision.state,
            payload=payload,
            timed_out=timed_out,
            history=decision.history,
        )

    async def _log(self, attempt: BlockedAttempt) -> bool:
        logged = False
        if self.recorder is not None:
            try:
                await self.recorder.log_blocked_attempt(attempt)
                logged = True
            except Exception as exc:
                logger.error("Failed to log blocked attempt on %s: %s", attempt.hostname, exc)

        if self.enable_notifications and self.notifier is not None:
            try:
                await self.notifier.notify_blocked(attempt)
            except Exception as exc:
                logger.error("Failed to send block notification: %s", exc)
        return logged

    async def _record(self, stat: Statistic) -> None:
        if self.recorder is None:
            return
        try:
            await self.recorder.increment(stat)
        except Exception as exc:
            logger.warning("Failed to record %s: %s", stat.value, exc)
