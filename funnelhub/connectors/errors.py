"""
Provider fetch errors
"""
from typing import Optional


class ProviderFetchError(RuntimeError):
    """A provider could not deliver its dataset."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class CrmTransportError(ProviderFetchError):
    """One failed CRM request (network error, timeout or non-2xx)."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__("CRM", message)
        self.status = status


class CrmFetchError(ProviderFetchError):
    """CRM request still failing after every retry."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__("CRM", message)
        self.attempts = attempts


class InsightStoreError(ProviderFetchError):
    """Reading synced ad insights failed."""
