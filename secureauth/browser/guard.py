"""Playwright integration: intercepts login submissions on live pages."""

from __future__ import annotations

import json
import logging
from typing import Any

from ..analyzer.models import FormSnapshot, PageContext
from ..pipeline.interceptor import (
    ANALYSIS_FAILED_MESSAGE,
    RESUME_FAILED_MESSAGE,
    SubmissionInterceptor,
)

logger = logging.getLogger(__name__)

BINDING_NAME = "__secureauthInspect"

# Actions returned to the page script
ACTION_PASS = "pass"
ACTION_ALLOW = "allow"
ACTION_HOLD = "hold"

# Capture-phase listener. Only forms with a filled password field and a filled
# identifier (same heuristics as pipeline/fields.py) are suspended. Resumption
# goes through requestSubmit so page handlers and the submitter still apply;
# the resume marker lets that second submit event through untouched.
INIT_SCRIPT_TEMPLATE = """
(() => {
    if (!__PROTECTION_ENABLED__) return;
    if (window.__secureauthInstalled) return;
    window.__secureauthInstalled = true;

    const RESUME_ATTR = 'data-secureauth-resume';
    const ANALYSIS_FAILED = __ANALYSIS_FAILED__;
    const RESUME_FAILED = __RESUME_FAILED__;
    const IDENTIFIER_HINTS = ['user', 'email', 'login'];
    const nativeSubmit = HTMLFormElement.prototype.submit;
    const nativeRequestSubmit = HTMLFormElement.prototype.requestSubmit;
    let counter = 0;

    function formKey(form) {
        if (!form.dataset.secureauthKey) {
            form.dataset.secureauthKey =
                form.id || form.getAttribute('name') || ('form-' + counter++);
        }
        return form.dataset.secureauthKey;
    }

    function readFields(form) {
        return Array.from(form.querySelectorAll('input')).map((input) => ({
            type: (input.getAttribute('type') || 'text').toLowerCase(),
            name: input.name || '',
            id: input.id || '',
            autocomplete: input.getAttribute('autocomplete') || '',
            value: input.value || '',
        }));
    }

    function textWith(attr) {
        return (f) => f.type === 'text'
            && IDENTIFIER_HINTS.some((hint) => f[attr].toLowerCase().includes(hint));
    }

    const IDENTIFIER_MATCHERS = [
        (f) => f.type === 'email',
        textWith('name'),
        textWith('id'),
        (f) => f.autocomplete === 'username' || f.autocomplete === 'email',
    ];

    function isLoginForm(fields) {
        const password = fields.find((f) => f.type === 'password' && f.value);
        if (!password) return false;
        for (const matcher of IDENTIFIER_MATCHERS) {
            if (fields.some((f) => f.type !== 'password' && f.value && matcher(f))) return true;
        }
        for (const f of fields) {
            if (f === password) break;
            if (f.type === 'text' || f.type === 'email') return Boolean(f.value);
        }
        return false;
    }

    function snapshot(form, fields) {
        const labels = Array.from(form.querySelectorAll('label')).map((label) => ({
            text: (label.textContent || '').trim(),
            for: label.htmlFor || '',
        }));
        const links = Array.from(form.querySelectorAll('a')).map(
            (a) => (a.textContent || '').trim()
        );
        return { key: formKey(form), action: form.action || '', fields, labels, links };
    }

    function resubmit(form, submitter) {
        form.setAttribute(RESUME_ATTR, '1');
        try {
            if (typeof nativeRequestSubmit === 'function') {
                try {
                    nativeRequestSubmit.call(form, submitter || undefined);
                    return;
                } catch (err) {
                    // Submitter detached or no longer a submit button
                    console.warn('SecureAuth requestSubmit failed, submitting directly', err);
                }
            }
            nativeSubmit.call(form);
        } finally {
            form.removeAttribute(RESUME_ATTR);
        }
    }

    document.addEventListener('submit', (event) => {
        const form = event.target;
        if (!(form instanceof HTMLFormElement)) return;
        if (form.hasAttribute(RESUME_ATTR)) return;

        const fields = readFields(form);
        if (!isLoginForm(fields)) return;

        event.preventDefault();
        event.stopImmediatePropagation();

        const submitter = event.submitter || null;
        const page = {
            url: location.href,
            text: document.body ? document.body.innerText : '',
            frameCount: document.querySelectorAll('iframe, frame').length,
        };
        window.__secureauthInspect({ form: snapshot(form, fields), page })
            .then((action) => {
                if (action === 'hold') return;
                try {
                    resubmit(form, submitter);
                } catch (err) {
                    console.error('SecureAuth resubmission failed', err);
                    window.alert(RESUME_FAILED);
                }
            })
            .catch((err) => {
                console.error('SecureAuth check failed', err);
                window.alert(ANALYSIS_FAILED);
            });
    }, true);
})();
"""


def build_init_script(protection_enabled: bool = True) -> str:
    """Render the page script. With protection off it installs no listener."""
    return (
        INIT_SCRIPT_TEMPLATE.replace("__PROTECTION_ENABLED__", "true" if protection_enabled else "false")
        .replace("__ANALYSIS_FAILED__", json.dumps(ANALYSIS_FAILED_MESSAGE))
        .replace("__RESUME_FAILED__", json.dumps(RESUME_FAILED_MESSAGE))
    )


class BrowserSubmitEvent:
    """SubmitEvent backed by a page snapshot. The chosen action goes back to the page."""

    def __init__(self, form: FormSnapshot, page: PageContext):
        self.form = form
        self.page = page
        self.action = ACTION_PASS
        self.propagation_stopped = False

    def prevent_default(self) -> None:
        self.action = ACTION_HOLD

    def stop_propagation(self) -> None:
        self.propagation_stopped = True

    def resume(self) -> None:
        self.action = ACTION_ALLOW


class PageGuard:
    """Attaches the interceptor to a Playwright Page or BrowserContext."""

    def __init__(self, interceptor: SubmissionInterceptor):
        self.interceptor = interceptor

    async def attach(self, target) -> None:
        """
        Install the binding and init script. Call before navigating.

        The protection setting is read once here; attach again on a fresh
        page or context after turning protection back on.
        """
        enabled = self.interceptor.config.enable_protection
        await target.expose_binding(BINDING_NAME, self._inspect)
        await target.add_init_script(build_init_script(enabled))
        logger.info("SecureAuth guard attached (protection %s)", "on" if enabled else "off")

    async def _inspect(self, source: Any, payload: Any) -> str:
        if not isinstance(payload, dict):
            logger.warning("Ignoring malformed submission payload")
            return ACTION_PASS

        form = FormSnapshot.from_dict(payload.get("form") or {})
        page = PageContext.from_dict(payload.get("page") or {})
        event = BrowserSubmitEvent(form, page)
        result = await self.interceptor.handle_submit(event)
        if result.duplicate:
            return ACTION_HOLD
        return event.action
