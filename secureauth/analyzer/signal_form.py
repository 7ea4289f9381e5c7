"""Structural form signal."""

from __future__ import annotations

import re
from typing import Iterable

from ..constants import DEFAULT_TRUSTED_DOMAINS, NEUTRAL_SCORE
from ..utils.domains import is_trusted_host, normalize_trusted_domains
from .models import FormSnapshot, SignalName, SignalResult
from .signals import SignalContext

REMEMBER_RE = re.compile(r"remember", re.I)
FORGOT_RE = re.compile(r"forgot|reset", re.I)
REGISTER_RE = re.compile(r"register|sign up|create account", re.I)


class FormSignal:
    name = SignalName.FORM

    def __init__(self, trusted_domains: Iterable[str] = DEFAULT_TRUSTED_DOMAINS):
        self.trusted_domains = normalize_trusted_domains(trusted_domains)

    @staticmethod
    def _has_remember_me(form: FormSnapshot) -> bool:
        for f in form.fields:
            if f.type != "checkbox":
                continue
            label = form.label_for(f.id)
            if label and REMEMBER_RE.search(label.text):
                return True
        return False

    def evaluate(self, context: SignalContext) -> SignalResult:
        form = context.form
        score = NEUTRAL_SCORE
        findings: list[str] = []

        has_labels = len(form.labels) >= 2
        if has_labels:
            score += 10

        has_remember = self._has_remember_me(form)
        if has_remember:
            score += 5

        has_forgot = any(FORGOT_RE.search(text) for text in form.links)
        if has_forgot:
            score += 10

        has_register = any(REGISTER_RE.search(text) for text in form.links)
        if has_register:
            score += 5

        suspicious_iframes = context.page.frame_count > 0 and not is_trusted_host(
            context.page.hostname, self.trusted_domains
        )
        if suspicious_iframes:
            score -= 20
            findings.append("Suspicious iframes detected")

        return SignalResult(
            name=self.name,
            score=score,
            findings=findings,
            metadata={
                "has_proper_labels": has_labels,
                "has_remember_me": has_remember,
                "has_forgot_password": has_forgot,
                "has_register_link": has_register,
                "suspicious_iframes": suspicious_iframes,
            },
        )
