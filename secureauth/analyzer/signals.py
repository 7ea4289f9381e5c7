"""Building blocks shared by all risk signals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .models import FormSnapshot, PageContext, SignalName, SignalResult


@dataclass
class SignalContext:
    """Shared context passed to each synchronous signal."""

    page: PageContext
    form: FormSnapshot


class Signal(Protocol):
    """Interface for synchronous signals."""

    name: SignalName

    def evaluate(self, context: SignalContext) -> SignalResult:  # pragma: no cover - interface
        ...
