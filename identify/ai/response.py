"""Typed decoding of Gemini ``generateContent`` responses.

Only the path ``candidates[0].content.parts[0].text`` matters here. The lists
are decoded as raw JSON and only their first element is validated, so
malformed siblings of the path never hide a usable label.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from .types import UNUSABLE_RESPONSE

PARSE_ERROR_PREFIX = "Error parsing response: "


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


def _first(items: list[Any] | None) -> Any:
    return items[0] if items else None


class ResponsePart(_WireModel):
    text: Any = None

    def label(self) -> str | None:
        if self.text is None or isinstance(self.text, str):
            return self.text
        raise TypeError(f"text is {type(self.text).__name__}, not a string")


class ResponseContent(_WireModel):
    parts: list[Any] | None = None

    def first_part(self) -> ResponsePart | None:
        raw = _first(self.parts)
        return ResponsePart.model_validate(raw) if raw is not None else None


class ResponseCandidate(_WireModel):
    content: ResponseContent | None = None


class GenerateContentResponse(_WireModel):
    candidates: list[Any] | None = None

    def first_candidate(self) -> ResponseCandidate | None:
        raw = _first(self.candidates)
        return ResponseCandidate.model_validate(raw) if raw is not None else None

    def first_text(self) -> str | None:
        """Walk the first candidate's first part; raises ``ValidationError`` on a wrong shape."""
        candidate = self.first_candidate()
        content = candidate.content if candidate is not None else None
        part = content.first_part() if content is not None else None
        return part.label() if part is not None else None


def extract_label(body: Any) -> str:
    """Return the first candidate's text, or a string describing why there is none."""
    try:
        text = GenerateContentResponse.model_validate(body).first_text()
    except ValidationError:
        return UNUSABLE_RESPONSE
    except Exception as exc:
        return f"{PARSE_ERROR_PREFIX}{exc}"
    if text is None:
        return UNUSABLE_RESPONSE
    return text


__all__ = [
    "GenerateContentResponse",
    "PARSE_ERROR_PREFIX",
    "ResponseCandidate",
    "ResponseContent",
    "ResponsePart",
    "extract_label",
]
