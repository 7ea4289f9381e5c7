"""
Submission interceptor.

Recognizes login submissions, suspends them while the risk engine runs and
resumes them exactly once when the decision allows it. Anything that is not
a login submission (no filled password field or no identifier) passes through
untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from ..analyzer.models import CredentialSubmission, FormSnapshot, PageContext, RiskAssessment
from ..config import Config
from ..decision.models import DecisionOutcome
from ..decision.policy import DecisionPolicy, Presenter, maybe_await
from .analysis import AnalysisEngine
from .fields import find_identifier_field, find_password_field

logger = logging.getLogger(__name__)

RESUME_FAILED_MESSAGE = "Login could not be completed. Please submit the form again."
ANALYSIS_FAILED_MESSAGE = "Login could not be checked. Please submit the form again."


class SubmitEvent(Protocol):
    """A form submission as seen by the interceptor."""

    form: FormSnapshot
    page: PageContext

    def prevent_default(self): ...

    def stop_propagation(self): ...

    def resume(self): ...


@dataclass
class InterceptionResult:
    applicable: bool
    outcome: Optional[DecisionOutcome] = None
    assessment: Optional[RiskAssessment] = None
    resumed: bool = False
    duplicate: bool = False
    error: Optional[str] = None


def build_submission(form: FormSnapshot, page: PageContext) -> Optional[CredentialSubmission]:
    """Return a CredentialSubmission, or None when this is not a login form."""
    password = find_password_field(form)
    if password is None:
        return None
    identifier = find_identifier_field(form, password)
    if identifier is None:
        return None
    return CredentialSubmission(
        password=password.value, identifier=identifier.value, form=form, page=page
    )


class SubmissionInterceptor:
    """Suspends recognized login submissions until the policy has decided."""

    def __init__(
        self,
        engine: AnalysisEngine,
        policy: DecisionPolicy,
        presenter: Presenter,
        config: Config,
    ):
        self.engine = engine
        self.policy = policy
        self.presenter = presenter
        self.config = config
        # Forms currently under analysis
        self._pending: set[str] = set()
        # Forms whose next submit event is our own resumption
        self._resuming: set[str] = set()

    @staticmethod
    def _key(event: SubmitEvent) -> str:
        return event.form.key or event.form.action or "form"

    def is_pending(self, form_key: str) -> bool:
        return form_key in self._pending

    async def handle_submit(self, event: SubmitEvent) -> InterceptionResult:
        key = self._key(event)

        if key in self._resuming:
            self._resuming.discard(key)
            logger.debug("Letting resumed submission of %s through", key)
            return InterceptionResult(applicable=False)

        if not self.config.enable_protection:
            return InterceptionResult(applicable=False)

        if key in self._pending:
            event.prevent_default()
            event.stop_propagation()
            logger.info("Ignoring duplicate submit of %s on %s", key, event.page.hostname)
            return InterceptionResult(applicable=True, duplicate=True)

        submission = build_submission(event.form, event.page)
        if submission is None:
            return InterceptionResult(applicable=False)

        event.prevent_default()
        event.stop_propagation()
        self._pending.add(key)
        try:
            try:
                assessment = await self.engine.assess(submission)
                result = await self.policy.decide(assessment, event.page)
            except Exception as exc:
                logger.error("Analysis failed for %s: %s", event.page.hostname, exc)
                await self._show_failure(ANALYSIS_FAILED_MESSAGE)
                return InterceptionResult(applicable=True, error=str(exc))

            resumed = False
            error = None
            if result.outcome is DecisionOutcome.ALLOW:
                error = await self._resume(event, key)
                resumed = error is None
            return InterceptionResult(
                applicable=True,
                outcome=result.outcome,
                assessment=assessment,
                resumed=resumed,
                error=error,
            )
        finally:
            self._pending.discard(key)

    async def _resume(self, event: SubmitEvent, key: str) -> Optional[str]:
        self._resuming.add(key)
        try:
            await maybe_await(event.resume())
        except Exception as exc:
            logger.error("Failed to resume submission on %s: %s", event.page.hostname, exc)
            await self._show_failure(RESUME_FAILED_MESSAGE)
            return str(exc)
        finally:
            self._resuming.discard(key)
        logger.info("Resumed submission of %s on %s", key, event.page.hostname)
        return None

    async def _show_failure(self, message: str) -> None:
        try:
            await maybe_await(self.presenter.show_failure(message))
        except Exception as exc:
            logger.error("Presenter failed to show failure: %s", exc)
