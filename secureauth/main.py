"""Command-line entry point for SecureAuth."""

import argparse
import asyncio
import getpass
import json
import logging
import sys
from pathlib import Path

from playwright.async_api import async_playwright

from .analyzer.models import CredentialSubmission, RiskLevel
from .analyzer.page_parser import find_login_form, parse_page
from .config import Config, load_config
from .decision.models import build_payload
from .decision.policy import DecisionPolicy
from .decision.presenter import ConsolePresenter
from .browser.guard import PageGuard
from .notifications.telegram import build_notifier
from .pipeline.analysis import AnalysisEngine
from .pipeline.interceptor import SubmissionInterceptor
from .storage.attempts import AttemptStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)
logger = logging.getLogger(__name__)


def build_interceptor(config: Config, store: AttemptStore, presenter) -> SubmissionInterceptor:
    """Wire engine, policy and collaborators together."""
    engine = AnalysisEngine(config=config)
    policy = DecisionPolicy(
        presenter,
        recorder=store,
        notifier=build_notifier(config),
        choice_timeout=config.choice_timeout,
        enable_notifications=config.enable_notifications,
    )
    return SubmissionInterceptor(engine, policy, presenter, config)


def open_store(config: Config) -> AttemptStore:
    return AttemptStore(config.database_path, history_limit=config.history_limit)


async def run_guard(config: Config, url: str, headless: bool = False) -> None:
    """Open a protected browser page and wait until it is closed."""
    async with open_store(config) as store:
        await store.prune(days=config.history_retention_days)
        interceptor = build_interceptor(config, store, ConsolePresenter())
        guard = PageGuard(interceptor)

        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=headless)
            try:
                context = await browser.new_context()
                await guard.attach(context)
                page = await context.new_page()
                await page.goto(url)
                logger.info("Guarding %s; close the window to exit", url)
                await page.wait_for_event("close", timeout=0)
            finally:
                await browser.close()


async def run_assess(config: Config, html_path: Path, url: str, password: str) -> dict:
    """Assess the first login form of a saved page."""
    page, forms = parse_page(url, Path(html_path).read_text(errors="replace"))
    form = find_login_form(forms)
    if form is None:
        return {"applicable": False, "url": url}

    engine = AnalysisEngine(config=config)
    assessment = await engine.assess(
        CredentialSubmission(password=password, identifier="", form=form, page=page)
    )
    blocking = assessment.level in (RiskLevel.CRITICAL, RiskLevel.HIGH)
    return {
        "applicable": True,
        "url": url,
        "assessment": assessment.to_dict(),
        "warning": build_payload(assessment, page, blocking=blocking).to_dict(),
    }


async def show_stats(config: Config) -> dict:
    async with open_store(config) as store:
        return await store.get_statistics()


async def show_history(config: Config, limit: int) -> list[dict]:
    async with open_store(config) as store:
        await store.prune(days=config.history_retention_days)
        attempts = await store.get_blocked_attempts(limit)
    return [attempt.to_dict() for attempt in attempts]


async def clear_history(config: Config) -> None:
    async with open_store(config) as store:
        await store.clear_history()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secureauth", description="Phishing-aware login submission guard."
    )
    parser.add_argument("--config-dir", type=Path, help="Directory holding settings/heuristics files.")
    sub = parser.add_subparsers(dest="command", required=True)

    guard = sub.add_parser("guard", help="Open a protected browser page.")
    guard.add_argument("url")
    guard.add_argument("--headless", action="store_true")

    assess = sub.add_parser("assess", help="Assess the login form of a saved HTML page.")
    assess.add_argument("html_file", type=Path)
    assess.add_argument("--url", required=True, help="URL the page was served from.")

    sub.add_parser("stats", help="Show usage statistics.")

    history = sub.add_parser("history", help="List blocked attempts.")
    history.add_argument("--limit", type=int, default=None)

    sub.add_parser("clear-history", help="Delete blocked attempts and statistics.")
    return parser


def main(argv=None):
    """Entry point."""
    args = build_parser().parse_args(argv)
    config = load_config(args.config_dir)

    if args.command == "guard":
        asyncio.run(run_guard(config, args.url, headless=args.headless))
    elif args.command == "assess":
        password = getpass.getpass("Password: ")
        print(json.dumps(asyncio.run(run_assess(config, args.html_file, args.url, password)), indent=2))
    elif args.command == "stats":
        print(json.dumps(asyncio.run(show_stats(config)), indent=2))
    elif args.command == "history":
        print(json.dumps(asyncio.run(show_history(config, args.limit)), indent=2))
    elif args.command == "clear-history":
        asyncio.run(clear_history(config))
        print("History cleared.")


if __name__ == "__main__":
    main()
