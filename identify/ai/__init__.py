from __future__ import annotations

from .errors import AllCandidatesExhausted, CascadeError
from .request import build_request
from .types import (
    ClassificationFailure,
    ClassificationOutcome,
    ClassificationRequest,
    ClassificationSuccess,
    Classifier,
)

__all__ = [
    "AllCandidatesExhausted",
    "CascadeError",
    "ClassificationFailure",
    "ClassificationOutcome",
    "ClassificationRequest",
    "ClassificationSuccess",
    "Classifier",
    "GeminiCascadeClassifier",
    "GeminiSettings",
    "build_request",
]


def __getattr__(name: str):
    if name == "GeminiCascadeClassifier":
        from .gemini_client import GeminiCascadeClassifier

        return GeminiCascadeClassifier
    if name == "GeminiSettings":
        from .gemini_client import GeminiSettings

        return GeminiSettings
    raise AttributeError(f"module 'identify.ai' has no attribute {name!r}")
