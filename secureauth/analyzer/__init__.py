"""Signal collectors and risk aggregation for SecureAuth."""

from .aggregator import RiskAggregator
from .models import (
    CredentialSubmission,
    FormField,
    FormLabel,
    FormSnapshot,
    PageContext,
    RiskAssessment,
    RiskLevel,
    SignalName,
    SignalResult,
)
from .signal_breach import BreachSignal, PwnedPasswordsClient
from .signal_content import ContentPattern, ContentSignal
from .signal_domain import DomainSignal
from .signal_form import FormSignal
from .signal_reputation import ReputationSignal
from .signal_transport import TransportSignal

__all__ = [
    "BreachSignal",
    "ContentPattern",
    "ContentSignal",
    "CredentialSubmission",
    "DomainSignal",
    "FormField",
    "FormLabel",
    "FormSignal",
    "FormSnapshot",
    "PageContext",
    "PwnedPasswordsClient",
    "ReputationSignal",
    "RiskAggregator",
    "RiskAssessment",
    "RiskLevel",
    "SignalName",
    "SignalResult",
    "TransportSignal",
]
