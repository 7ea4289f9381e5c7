"""Tests for submission interception and resumption."""

import asyncio

import pytest

from secureauth.analyzer.models import FormField, FormSnapshot, PageContext, RiskAssessment, RiskLevel
from secureauth.config import Config
from secureauth.decision.models import DecisionOutcome
from secureauth.decision.policy import DecisionPolicy
from secureauth.pipeline.fields import find_identifier_field, find_password_field
from secureauth.pipeline.interceptor import SubmissionInterceptor, build_submission

PAGE = PageContext(url="https://example.com/login")


class _Event:
    def __init__(self, form, page=PAGE, on_resume=None, fail_resume=False):
        self.form = form
        self.page = page
        self.prevented = False
        self.stopped = False
        self.resumed = 0
        self._on_resume = on_resume
        self._fail_resume = fail_resume

    def prevent_default(self):
        self.prevented = True

    def stop_propagation(self):
        self.stopped = True

    async def resume(self):
        if self._fail_resume:
            raise RuntimeError("form detached")
        self.resumed += 1
        if self._on_resume is not None:
            await self._on_resume()


class _StubEngine:
    def __init__(self, level=RiskLevel.LOW, overall=80.0, gate=None, error=None):
        self.level = level
        self.overall = overall
        self.gate = gate
        self.error = error
        self.calls = 0

    async def assess(self, submission):
        submission.consume()
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return RiskAssessment(signals={}, overall=self.overall, level=self.level)


def _interceptor(engine, presenter, recorder, **config):
    policy = DecisionPolicy(presenter, recorder)
    return SubmissionInterceptor(engine, policy, presenter, Config(**config))


class TestIdentifierHeuristics:
    """Password and username field recognition."""

    def test_email_field_wins(self):
        form = FormSnapshot(
            fields=[
                FormField(type="text", name="username", value="bob"),
                FormField(type="email", name="contact", value="bob@example.com"),
                FormField(type="password", value="pw"),
            ]
        )
        password = find_password_field(form)
        assert find_identifier_field(form, password).value == "bob@example.com"

    def test_name_then_id_then_autocomplete(self):
        by_id = FormSnapshot(
            fields=[
                FormField(type="text", name="q", id="login-id", value="carol"),
                FormField(type="password", value="pw"),
            ]
        )
        assert find_identifier_field(by_id).value == "carol"

        by_autocomplete = FormSnapshot(
            fields=[
                FormField(type="tel", name="phone", autocomplete="username", value="555"),
                FormField(type="password", value="pw"),
            ]
        )
        assert find_identifier_field(by_autocomplete).value == "555"

    def test_empty_candidate_is_skipped(self):
        form = FormSnapshot(
            fields=[
                FormField(type="email", name="email", value=""),
                FormField(type="text", name="user_name", value="dave"),
                FormField(type="password", value="pw"),
            ]
        )
        assert find_identifier_field(form).value == "dave"

    def test_fallback_first_text_before_password(self):
        form = FormSnapshot(
            fields=[
                FormField(type="hidden", name="csrf", value="x"),
                FormField(type="text", name="acct", value="erin"),
                FormField(type="password", name="pw", value="pw"),
                FormField(type="text", name="otp", value="123"),
            ]
        )
        password = find_password_field(form)
        assert find_identifier_field(form, password).name == "acct"

    def test_text_after_password_is_not_a_fallback(self):
        form = FormSnapshot(
            fields=[
                FormField(type="password", name="pw", value="pw"),
                FormField(type="text", name="otp", value="123"),
            ]
        )
        assert find_identifier_field(form, find_password_field(form)) is None

    def test_empty_password_is_not_a_login(self, login_form):
        assert build_submission(login_form(password=""), PAGE) is None


class TestSubmissionInterceptor:
    """Suspension, pass-through and exactly-once resumption."""

    @pytest.mark.asyncio
    async def test_form_without_password_passes_through(self, presenter, recorder):
        engine = _StubEngine()
        event = _Event(FormSnapshot(fields=[FormField(type="text", name="q", value="shoes")]))
        result = await _interceptor(engine, presenter, recorder).handle_submit(event)
        assert result.applicable is False
        assert result.assessment is None
        assert event.prevented is False and event.resumed == 0
        assert engine.calls == 0

    @pytest.mark.asyncio
    async def test_missing_identifier_passes_through(self, presenter, recorder):
        form = FormSnapshot(fields=[FormField(type="password", value="pw")])
        event = _Event(form)
        result = await _interceptor(_StubEngine(), presenter, recorder).handle_submit(event)
        assert result.applicable is False
        assert event.prevented is False

    @pytest.mark.asyncio
    async def test_protection_disabled(self, presenter, recorder, login_form):
        engine = _StubEngine(level=RiskLevel.CRITICAL, overall=1.0)
        event = _Event(login_form())
        interceptor = _interceptor(engine, presenter, recorder, enable_protection=False)
        result = await interceptor.handle_submit(event)
        assert result.applicable is False
        assert event.prevented is False
        assert engine.calls == 0

    @pytest.mark.asyncio
    async def test_low_risk_resumes_once(self, presenter, recorder, login_form):
        event = _Event(login_form())
        result = await _interceptor(_StubEngine(), presenter, recorder).handle_submit(event)
        assert event.prevented and event.stopped
        assert result.outcome == DecisionOutcome.ALLOW
        assert result.resumed is True
        assert event.resumed == 1

    @pytest.mark.asyncio
    async def test_high_risk_stays_suspended(self, presenter, recorder, login_form):
        event = _Event(login_form())
        engine = _StubEngine(level=RiskLevel.HIGH, overall=25.0)
        result = await _interceptor(engine, presenter, recorder).handle_submit(event)
        assert result.outcome == DecisionOutcome.BLOCK
        assert event.prevented is True
        assert event.resumed == 0
        assert len(recorder.attempts) == 1

    @pytest.mark.asyncio
    async def test_resumed_submit_is_not_intercepted_again(self, presenter, recorder, login_form):
        engine = _StubEngine()
        interceptor = _interceptor(engine, presenter, recorder)
        form = login_form()
        nested = {}

        async def resubmit():
            nested["result"] = await interceptor.handle_submit(_Event(form))

        event = _Event(form, on_resume=resubmit)
        await interceptor.handle_submit(event)

        assert nested["result"].applicable is False
        assert engine.calls == 1
        assert event.resumed == 1

        # The guard only covers one event
        await interceptor.handle_submit(_Event(form))
        assert engine.calls == 2

    @pytest.mark.asyncio
    async def test_duplicate_submit_is_ignored(self, presenter, recorder, login_form):
        gate = asyncio.Event()
        engine = _StubEngine(gate=gate)
        interceptor = _interceptor(engine, presenter, recorder)

        first = _Event(login_form())
        task = asyncio.ensure_future(interceptor.handle_submit(first))
        await asyncio.sleep(0)
        assert interceptor.is_pending("login")

        second = _Event(login_form())
        duplicate = await interceptor.handle_submit(second)
        assert duplicate.duplicate is True
        assert second.prevented is True

        gate.set()
        result = await task
        assert result.resumed is True
        assert engine.calls == 1
        assert not interceptor.is_pending("login")

    @pytest.mark.asyncio
    async def test_resume_failure_reported(self, presenter, recorder, login_form):
        event = _Event(login_form(), fail_resume=True)
        result = await _interceptor(_StubEngine(), presenter, recorder).handle_submit(event)
        assert result.outcome == DecisionOutcome.ALLOW
        assert result.resumed is False
        assert result.error == "form detached"
        assert len(presenter.failures) == 1

    @pytest.mark.asyncio
    async def test_analysis_failure_reported(self, presenter, recorder, login_form):
        engine = _StubEngine(error=ValueError("no weighted signals"))
        interceptor = _interceptor(engine, presenter, recorder)
        result = await interceptor.handle_submit(_Event(login_form()))
        assert result.applicable is True
        assert result.outcome is None
        assert presenter.failures
        assert not interceptor.is_pending("login")
