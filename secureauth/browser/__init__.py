"""Live browser integration for SecureAuth."""

from .guard import BrowserSubmitEvent, PageGuard

__all__ = ["BrowserSubmitEvent", "PageGuard"]
