from __future__ import annotations

import threading
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Sequence

import requests

from .errors import (
    CascadeError,
    ClassificationCancelled,
    ModelUnavailableError,
    TransportError,
)
from .request import build_payload, build_request
from .response import PARSE_ERROR_PREFIX, extract_label
from .types import (
    UNUSABLE_RESPONSE,
    AttemptKind,
    AttemptRecord,
    ClassificationFailure,
    ClassificationOutcome,
    ClassificationRequest,
    ClassificationSuccess,
    Classifier,
    is_usable_label,
)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_MODEL = "gemini-2.5-flash"
# Tried in this order after the configured model.
FALLBACK_MODELS: tuple[str, ...] = (
    "gemini-2.5-pro",
    "gemini-1.5-pro",
    "gemini-1.5-flash",
    "gemini-pro",
    "gemini-pro-vision",
)
API_VERSIONS: tuple[str, ...] = ("v1beta", "v1")


def _normalize_model(name: str) -> str:
    model = name.strip()
    if model.startswith("models/"):
        model = model[len("models/"):]
    return model


def build_model_candidates(default_model: str, fallback_models: Sequence[str]) -> tuple[str, ...]:
    """Return the default model followed by unseen fallbacks, in order."""
    candidates: list[str] = []
    for name in (default_model, *fallback_models):
        model = _normalize_model(name)
        if model and model not in candidates:
            candidates.append(model)
    return tuple(candidates)


@dataclass(frozen=True)
class GeminiSettings:
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    default_model: str = DEFAULT_MODEL
    fallback_models: tuple[str, ...] = FALLBACK_MODELS
    api_versions: tuple[str, ...] = API_VERSIONS
    timeout: float = 30.0

    @property
    def models_to_try(self) -> tuple[str, ...]:
        return build_model_candidates(self.default_model, self.fallback_models)


@dataclass
class GeminiCascadeClassifier(Classifier):
    """Identify images with Gemini, falling back across models and API versions.

    Each model in ``settings.models_to_try`` is tried in order. For a model,
    every API version is tried in order: a 404 or an unusable body moves on to
    the next version, any other failure abandons the model. The first usable
    label wins.
    """

    settings: GeminiSettings
    session: requests.Session = field(default_factory=requests.Session)

    def classify(
        self,
        request: ClassificationRequest,
        cancel_event: threading.Event | None = None,
    ) -> ClassificationOutcome:
        if not self.settings.api_key:
            raise RuntimeError("Gemini API key is required to identify images")

        payload = build_payload(request)
        attempts: list[AttemptRecord] = []
        last_error: str | None = None

        for model in self.settings.models_to_try:
            try:
                attempt = self._call_model(model, payload, attempts, cancel_event)
            except ClassificationCancelled as exc:
                return ClassificationFailure(last_error=str(exc), attempts=tuple(attempts))
            except CascadeError as exc:
                last_error = str(exc)
                continue
            if is_usable_label(attempt.detail):
                return ClassificationSuccess(
                    label=attempt.detail,
                    model=attempt.model,
                    api_version=attempt.api_version,
                    attempts=tuple(attempts),
                )

        return ClassificationFailure(last_error=last_error, attempts=tuple(attempts))

    def classify_image(
        self,
        image_bytes: bytes,
        media_type: str,
        cancel_event: threading.Event | None = None,
    ) -> ClassificationOutcome:
        return self.classify(build_request(image_bytes, media_type), cancel_event)

    def call_model(self, model: str, request: ClassificationRequest) -> str:
        """Try every API version for one model and return the first label found."""
        return self._call_model(model, build_payload(request), [], None).detail

    def _call_model(
        self,
        model: str,
        payload: dict[str, Any],
        attempts: list[AttemptRecord],
        cancel_event: threading.Event | None,
    ) -> AttemptRecord:
        last_error: str | None = None
        for version in self.settings.api_versions:
            if cancel_event is not None and cancel_event.is_set():
                raise ClassificationCancelled(last_error)
            attempt = self._attempt(model, version, payload)
            attempts.append(attempt)
            if attempt.kind in (AttemptKind.SUCCESS, AttemptKind.PARSE_ERROR):
                return attempt
            if not attempt.recoverable:
                raise TransportError(attempt.detail)
            last_error = attempt.detail
        raise ModelUnavailableError(model, last_error)

    def _attempt(self, model: str, version: str, payload: dict[str, Any]) -> AttemptRecord:
        try:
            response = self.session.post(
                self._endpoint(version, model),
                params={"key": self.settings.api_key},
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            return AttemptRecord(
                model, version, AttemptKind.TRANSPORT_ERROR, self._redact(f"API {version}: {exc}")
            )

        if response.status_code == HTTPStatus.NOT_FOUND:
            return AttemptRecord(
                model, version, AttemptKind.NOT_FOUND, self._redact(f"API {version}: {_describe_status(response)}")
            )
        if not response.ok:
            return AttemptRecord(
                model,
                version,
                AttemptKind.TRANSPORT_ERROR,
                self._redact(f"API {version}: {_describe_status(response)}"),
            )

        try:
            body = response.json()
        except ValueError:
            return AttemptRecord(
                model, version, AttemptKind.TRANSPORT_ERROR, f"API {version}: response was not valid JSON"
            )

        label = extract_label(body)
        if UNUSABLE_RESPONSE in label:
            return AttemptRecord(model, version, AttemptKind.UNUSABLE, label)
        if label.startswith(PARSE_ERROR_PREFIX):
            return AttemptRecord(model, version, AttemptKind.PARSE_ERROR, label)
        return AttemptRecord(model, version, AttemptKind.SUCCESS, label)

    def _endpoint(self, version: str, model: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}/{version}/models/{model}:generateContent"

    def _redact(self, message: str) -> str:
        if self.settings.api_key:
            return message.replace(self.settings.api_key, "***")
        return message


def _describe_status(response: requests.Response) -> str:
    status = f"{response.status_code} {response.reason or ''}".strip()
    try:
        data = response.json()
    except ValueError:
        return status
    error = data.get("error") if isinstance(data, dict) else None
    message = error.get("message") if isinstance(error, dict) else None
    if isinstance(message, str) and message.strip():
        return f"{status}: {message.strip()}"
    return status


__all__ = [
    "API_VERSIONS",
    "DEFAULT_BASE_URL",
    "DEFAULT_MODEL",
    "FALLBACK_MODELS",
    "GeminiCascadeClassifier",
    "GeminiSettings",
    "build_model_candidates",
]
