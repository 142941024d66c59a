from __future__ import annotations

from unittest.mock import patch

import pytest

from identify.ai.response import PARSE_ERROR_PREFIX, GenerateContentResponse, extract_label
from identify.ai.types import UNUSABLE_RESPONSE, is_usable_label


def test_extracts_first_candidate_text_verbatim() -> None:
    body = {
        "candidates": [
            {
                "content": {"parts": [{"text": "This is an animal: Barn Owl\n"}, {"text": "ignored"}]},
                "finishReason": "STOP",
            },
            {"content": {"parts": [{"text": "second candidate"}]}},
        ],
        "usageMetadata": {"totalTokenCount": 12},
    }

    assert extract_label(body) == "This is an animal: Barn Owl\n"


def test_typed_response_tolerates_partial_bodies() -> None:
    assert GenerateContentResponse.model_validate({}).first_text() is None
    assert GenerateContentResponse.model_validate({"candidates": [{"content": None}]}).first_text() is None
    decoded = GenerateContentResponse.model_validate(
        {"candidates": [{"content": {"parts": [{"text": "This is: Fog"}]}}]}
    )
    assert decoded.first_text() == "This is: Fog"


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        (
            {
                "candidates": [
                    {"content": {"parts": [{"text": "This is an animal: Fox"}]}},
                    {"content": "oops"},
                ]
            },
            "This is an animal: Fox",
        ),
        (
            {"candidates": [{"content": {"parts": [{"text": "This is: Fog"}, {"text": {"nested": 1}}]}}]},
            "This is: Fog",
        ),
        (
            {"candidates": [{"content": {"parts": [{"text": "This is a flower: Tulip"}, "stray"]}}, 42]},
            "This is a flower: Tulip",
        ),
    ],
)
def test_malformed_siblings_do_not_hide_first_text(body: object, expected: str) -> None:
    assert extract_label(body) == expected


def test_non_string_text_becomes_error_string() -> None:
    label = extract_label({"candidates": [{"content": {"parts": [{"text": {"nested": 1}}]}}]})

    assert label == f"{PARSE_ERROR_PREFIX}text is dict, not a string"
    assert not is_usable_label(label)


@pytest.mark.parametrize(
    "body",
    [
        None,
        {},
        {"candidates": []},
        {"candidates": [{}]},
        {"candidates": [{"content": {}}]},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"inline_data": {}}]}}]},
        {"candidates": "not-a-list"},
        ["candidates"],
        {"candidates": [{"content": "oops"}]},
        {"candidates": [{"content": {"parts": ["stray"]}}]},
    ],
)
def test_missing_or_malformed_shapes_yield_sentinel(body: object) -> None:
    assert extract_label(body) == UNUSABLE_RESPONSE


def test_unexpected_failure_becomes_error_string() -> None:
    with patch("identify.ai.response.GenerateContentResponse") as fake_model:
        fake_model.model_validate.side_effect = TypeError("boom")
        label = extract_label({"candidates": []})

    assert label == f"{PARSE_ERROR_PREFIX}boom"
    assert not is_usable_label(label)


@pytest.mark.parametrize(
    ("label", "usable"),
    [
        ("This is a flower: Orchid", True),
        (UNUSABLE_RESPONSE, False),
        ("Error parsing response: bad", False),
        ("", False),
        ("   ", False),
        (None, False),
    ],
)
def test_usable_label_rules(label: str | None, usable: bool) -> None:
    assert is_usable_label(label) is usable
