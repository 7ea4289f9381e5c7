"""Exceptions raised by SecureAuth."""


class SecureAuthError(Exception):
    """Base exception for SecureAuth errors."""

    pass


class SubmissionConsumedError(SecureAuthError):
    """A credential submission was analyzed more than once."""

    pass


class InvalidTransitionError(SecureAuthError):
    """Decision state machine was asked to make an illegal transition."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Illegal decision transition: {current} -> {target}")


class BreachLookupError(SecureAuthError):
    """Breach-range service could not be queried."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
