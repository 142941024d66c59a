from __future__ import annotations


class CascadeError(RuntimeError):
    """Base class for failures raised while walking the model cascade."""


class TransportError(CascadeError):
    """A non-404 HTTP status or a network failure for one model."""


class ModelUnavailableError(CascadeError):
    """Every API version was tried for a model without a usable label."""

    def __init__(self, model: str, last_error: str | None) -> None:
        self.model = model
        self.last_error = last_error
        message = f"Model {model} not found in any API version."
        if last_error:
            message = f"{message} {last_error}"
        super().__init__(message)


class ClassificationCancelled(CascadeError):
    """The caller asked the cascade to stop before the next attempt."""

    def __init__(self, last_error: str | None = None) -> None:
        self.last_error = last_error
        message = "Classification cancelled."
        if last_error:
            message = f"{message} {last_error}"
        super().__init__(message)


class AllCandidatesExhausted(CascadeError):
    """No (model, API version) combination produced a usable label."""

    def __init__(self, last_error: str | None) -> None:
        self.last_error = last_error
        super().__init__(
            "Failed to connect to Gemini API. Please check your API key and model "
            f"configuration. Last error: {last_error or 'Model not available'}"
        )


__all__ = [
    "AllCandidatesExhausted",
    "CascadeError",
    "ClassificationCancelled",
    "ModelUnavailableError",
    "TransportError",
]
