"""Weighted aggregation of signal scores into a risk verdict."""

from __future__ import annotations

import math
from typing import Mapping, Optional

from ..config import Sensitivity, coerce_sensitivity
from ..constants import DEFAULT_SIGNAL_WEIGHTS, SENSITIVITY_THRESHOLDS
from .models import RiskAssessment, RiskLevel, SignalName, SignalResult, clamp_score


class RiskAggregator:
    """
    Combines per-signal scores into one overall score and level.

    ``overall = sum(score * weight)`` over the signals present, with weights
    renormalized when a signal was skipped by configuration. Pure: the same
    results always give an equal RiskAssessment.
    """

    def __init__(
        self,
        weights: Optional[Mapping[str, float]] = None,
        sensitivity: Sensitivity | str = Sensitivity.MEDIUM,
    ):
        raw = dict(DEFAULT_SIGNAL_WEIGHTS if weights is None else weights)
        parsed: dict[SignalName, float] = {}
        for key, value in raw.items():
            weight = float(value)
            if not math.isfinite(weight) or weight < 0:
                raise ValueError(f"Signal weight for {key} must be a finite non-negative number")
            parsed[SignalName(key)] = weight
        if not any(parsed.values()):
            raise ValueError("At least one signal weight must be positive")
        self.weights: Mapping[SignalName, float] = parsed
        self.sensitivity = coerce_sensitivity(sensitivity)
        self.thresholds = SENSITIVITY_THRESHOLDS[self.sensitivity.value]

    def level_for(self, score: float) -> RiskLevel:
        low, medium, high = self.thresholds
        if score >= low:
            return RiskLevel.LOW
        if score >= medium:
            return RiskLevel.MEDIUM
        if score >= high:
            return RiskLevel.HIGH
        return RiskLevel.CRITICAL

    def aggregate(self, results: Mapping[SignalName, SignalResult]) -> RiskAssessment:
        present = {SignalName(name): result for name, result in results.items()}
        excluded = frozenset(name for name in self.weights if name not in present)

        total_weight = math.fsum(self.weights.get(name, 0.0) for name in present)
        if total_weight <= 0:
            raise ValueError("No weighted signals to aggregate")

        overall = math.fsum(
            result.score * self.weights.get(name, 0.0) for name, result in present.items()
        )
        if not math.isclose(total_weight, 1.0):
            overall /= total_weight

        overall = round(clamp_score(overall), 2)
        return RiskAssessment(
            signals=present,
            overall=overall,
            level=self.level_for(overall),
            excluded=excluded,
        )
