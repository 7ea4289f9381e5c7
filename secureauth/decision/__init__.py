"""Decision policy for SecureAuth."""

from .models import DecisionOutcome, DecisionResult, DecisionState, UserChoice, WarningPayload
from .policy import Decision, DecisionPolicy
from .presenter import ConsolePresenter
from .prompt import ChoicePrompt

__all__ = [
    "ChoicePrompt",
    "ConsolePresenter",
    "Decision",
    "DecisionOutcome",
    "DecisionPolicy",
    "DecisionResult",
    "DecisionState",
    "UserChoice",
    "WarningPayload",
]
