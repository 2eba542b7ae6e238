"""
Error taxonomy for the hazard classification engine.
"""


class HazardEngineError(Exception):
    """Base class for all engine errors."""


class InvalidArgument(HazardEngineError, ValueError):
    """Rejected input (bad chunk size, empty batch, duplicate ids)."""


class ConfigurationError(HazardEngineError):
    """Provider credentials or endpoint missing."""


class InferenceError(HazardEngineError):
    """Base class for failures of a single inference call."""


class InferenceTimeout(InferenceError):
    """The provider did not answer within the configured bound."""

    def __init__(self, timeout: float, message: str = ""):
        self.timeout = timeout
        super().__init__(message or f"Inference call timed out after {timeout}s")


class InferenceProviderError(InferenceError):
    """Transport or provider-side failure."""
