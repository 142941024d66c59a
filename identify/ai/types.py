from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Union

from .errors import AllCandidatesExhausted

# Returned by the extractor when the provider answered without a usable label.
UNUSABLE_RESPONSE: str = "Unable to identify the image. Please try again."
# Labels starting with this prefix describe a failure rather than an image.
ERROR_PREFIX: str = "Error"


def is_usable_label(label: str | None) -> bool:
    if label is None or not label.strip():
        return False
    return not label.startswith(ERROR_PREFIX) and UNUSABLE_RESPONSE not in label


@dataclass(frozen=True)
class ClassificationRequest:
    image_bytes: bytes
    media_type: str
    prompt_text: str


class AttemptKind(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    UNUSABLE = "unusable"
    TRANSPORT_ERROR = "transport_error"
    PARSE_ERROR = "parse_error"


@dataclass(frozen=True)
class AttemptRecord:
    """Outcome of a single (model, API version) call."""

    model: str
    api_version: str
    kind: AttemptKind
    detail: str

    @property
    def recoverable(self) -> bool:
        """Whether the next API version may still be tried for this model."""
        return self.kind in (AttemptKind.NOT_FOUND, AttemptKind.UNUSABLE)


@dataclass(frozen=True)
class ClassificationSuccess:
    label: str
    model: str
    api_version: str
    attempts: tuple[AttemptRecord, ...] = ()

    @property
    def ok(self) -> bool:
        return True

    def raise_for_failure(self) -> "ClassificationSuccess":
        return self


@dataclass(frozen=True)
class ClassificationFailure:
    last_error: str | None = None
    attempts: tuple[AttemptRecord, ...] = ()

    @property
    def ok(self) -> bool:
        return False

    def raise_for_failure(self) -> "ClassificationSuccess":
        raise AllCandidatesExhausted(self.last_error)


ClassificationOutcome = Union[ClassificationSuccess, ClassificationFailure]


class Classifier(Protocol):
    def classify(self, request: ClassificationRequest) -> ClassificationOutcome: ...


__all__ = [
    "AttemptKind",
    "AttemptRecord",
    "ClassificationFailure",
    "ClassificationOutcome",
    "ClassificationRequest",
    "ClassificationSuccess",
    "Classifier",
    "ERROR_PREFIX",
    "UNUSABLE_RESPONSE",
    "is_usable_label",
]
