from __future__ import annotations

import base64
from typing import Any

from .types import ClassificationRequest

IDENTIFICATION_PROMPT: str = (
    "Analyze this image carefully and identify what it contains. "
    "Provide your response in EXACTLY ONE of these formats:\n\n"
    "1. If it's an ANIMAL: Start your response with 'This is an animal: [Animal Name]' "
    "(e.g., 'This is an animal: Golden Retriever' or 'This is an animal: Bengal Tiger')\n"
    "2. If it's a FLOWER: Start your response with 'This is a flower: [Flower Name]' "
    "(e.g., 'This is a flower: Rose' or 'This is a flower: Sunflower')\n"
    "3. If it's an OBJECT: Start your response with 'This is an object: [Object Name]' "
    "(e.g., 'This is an object: Smartphone' or 'This is an object: Coffee Mug')\n"
    "4. If it's something else: Start with 'This is: [Description]'\n\n"
    "IMPORTANT: \n"
    "- Be specific and accurate with the name\n"
    "- If you can identify the exact breed, species, or type, include that in the name\n"
    "- Start your response immediately with the identification format "
    "(e.g., 'This is an animal: [name]')\n"
    "- Keep the response clear and concise"
)


def build_request(image_bytes: bytes, media_type: str) -> ClassificationRequest:
    """Wrap an upload for the cascade. Bytes and media type pass through unchecked."""
    return ClassificationRequest(
        image_bytes=image_bytes,
        media_type=media_type,
        prompt_text=IDENTIFICATION_PROMPT,
    )


def build_payload(request: ClassificationRequest) -> dict[str, Any]:
    encoded = base64.b64encode(request.image_bytes).decode("ascii")
    return {
        "contents": [
            {
                "parts": [
                    {
                        "inline_data": {
                            "mime_type": request.media_type,
                            "data": encoded,
                        }
                    },
                    {"text": request.prompt_text},
                ],
            }
        ],
    }


__all__ = ["IDENTIFICATION_PROMPT", "build_payload", "build_request"]
