"""Global pytest configuration and shared fakes."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import AsyncGenerator

import pytest

from secureauth.analyzer.models import FormField, FormLabel, FormSnapshot, PageContext
from secureauth.decision.models import UserChoice

CONFIG_ENV_VARS = (
    "ENABLE_PROTECTION",
    "ENABLE_NOTIFICATIONS",
    "ENABLE_BREACH_CHECK",
    "SENSITIVITY",
    "BREACH_API_URL",
    "BREACH_TIMEOUT",
    "BREACH_CACHE_TTL",
    "BREACH_CACHE_SIZE",
    "CHOICE_TIMEOUT",
    "DATA_DIR",
    "CONFIG_DIR",
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
)


@pytest.fixture(scope="session")
def event_loop() -> AsyncGenerator[asyncio.AbstractEventLoop, None]:
    """Provide a shared event loop for async tests and fixtures."""

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        yield loop
    finally:
        loop.close()


def _get_loop(request: pytest.FixtureRequest) -> asyncio.AbstractEventLoop:
    try:
        loop = request.getfixturevalue("event_loop")
    except pytest.FixtureLookupError:
        loop = asyncio.new_event_loop()
    if loop.is_closed():
        loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    return loop


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):  # type: ignore[override]
    if inspect.iscoroutinefunction(pyfuncitem.obj):
        testargs = {
            name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
        }
        loop = testargs.get("event_loop")
        owned = loop is None
        if owned:
            loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(pyfuncitem.obj(**testargs))
        finally:
            if owned:
                loop.close()
        return True
    return None


@pytest.hookimpl(tryfirst=True)
def pytest_fixture_setup(fixturedef, request):  # type: ignore[override]
    func = fixturedef.func
    if inspect.isasyncgenfunction(func):
        loop = _get_loop(request)
        kwargs = {arg: request.getfixturevalue(arg) for arg in fixturedef.argnames}
        agen = func(**kwargs)
        value = loop.run_until_complete(agen.__anext__())

        def finalize() -> None:
            try:
                loop.run_until_complete(agen.__anext__())
            except StopAsyncIteration:
                pass

        request.addfinalizer(finalize)
        return value

    return None


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test as requiring asyncio support")


@pytest.fixture(autouse=True)
def _clean_config_env(monkeypatch):
    """Keep a developer's shell or .env from leaking into config tests."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def make_login_form(
    *,
    key: str = "login",
    username: str = "alice@example.com",
    password: str = "hunter2",
    labels: tuple[str, ...] = (),
    links: tuple[str, ...] = (),
) -> FormSnapshot:
    """A two-field login form with optional labels and links."""
    return FormSnapshot(
        key=key,
        action="/session",
        fields=[
            FormField(type="email", name="email", id="email", value=username),
            FormField(type="password", name="password", id="password", value=password),
        ],
        labels=[FormLabel(text=text, for_id="") for text in labels],
        links=list(links),
    )


@pytest.fixture
def login_form():
    return make_login_form


@pytest.fixture
def page_factory():
    def build(url: str = "https://example.com/login", text: str = "", frames: int = 0) -> PageContext:
        return PageContext(url=url, visible_text=text, frame_count=frames)

    return build


class RecordingPresenter:
    """Presenter that records calls and answers prompts with a fixed choice."""

    def __init__(self, choice: UserChoice | str | None = UserChoice.CANCEL):
        self.choice = choice
        self.blocks = []
        self.prompts = []
        self.failures: list[str] = []

    def show_block(self, payload) -> None:
        self.blocks.append(payload)

    def request_choice(self, payload, prompt) -> None:
        self.prompts.append(payload)
        if self.choice is not None:
            prompt.resolve(self.choice)

    def show_failure(self, message: str) -> None:
        self.failures.append(message)


class MemoryRecorder:
    """In-memory stand-in for AttemptStore."""

    def __init__(self):
        self.attempts = []
        self.stats: dict[str, int] = {}

    async def log_blocked_attempt(self, attempt) -> None:
        self.attempts.append(attempt)
        self.stats["blocked_attempts"] = self.stats.get("blocked_attempts", 0) + 1

    async def increment(self, stat) -> None:
        key = getattr(stat, "value", stat)
        self.stats[key] = self.stats.get(key, 0) + 1


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def recorder():
    return MemoryRecorder()


@pytest.fixture
def presenter_factory():
    return RecordingPresenter
