"""Remote explanation endpoint adapters."""

from .client import EndpointFlavor, EndpointSettings, ExplanationClient
from .retry import RetryPolicy
from .transport import HttpTransport, TransportOutcome

__all__ = [
    "EndpointFlavor",
    "EndpointSettings",
    "ExplanationClient",
    "HttpTransport",
    "RetryPolicy",
    "TransportOutcome",
]
