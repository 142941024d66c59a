from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from ..ai import ClassificationSuccess, Classifier, build_request
from ..datalake.storage import IdentificationRecord, RecordStore


logger = logging.getLogger(__name__)


class EmptyUploadError(ValueError):
    """Raised when an upload carries no image bytes."""


@dataclass
class IdentificationService:
    classifier: Classifier
    store: RecordStore

    def identify(
        self,
        image_bytes: bytes,
        media_type: str | None,
        file_name: str | None,
        user_id: str,
        *,
        created_at: datetime | None = None,
    ) -> IdentificationRecord:
        """Classify an upload and persist the label for ``user_id``.

        Raises:
            EmptyUploadError: no image bytes were uploaded.
            AllCandidatesExhausted: no model produced a usable label.
        """
        if not image_bytes:
            raise EmptyUploadError("Please select an image file.")

        logger.info(
            "Identifying upload user=%s file=%s media_type=%s image_bytes=%d",
            user_id,
            file_name,
            media_type,
            len(image_bytes),
        )
        request = build_request(image_bytes, media_type or "application/octet-stream")
        outcome = self.classifier.classify(request)

        if not isinstance(outcome, ClassificationSuccess):
            logger.warning(
                "Identification failed user=%s attempts=%d last_error=%s",
                user_id,
                len(outcome.attempts),
                outcome.last_error,
            )
            outcome.raise_for_failure()

        record = IdentificationRecord.create(
            label=outcome.label,
            file_name=file_name,
            media_type=media_type,
            user_id=user_id,
            model=outcome.model,
            api_version=outcome.api_version,
            created_at=created_at,
        )
        self.store.save(record)
        logger.info(
            "Identification stored record_id=%s user=%s model=%s api_version=%s attempts=%d",
            record.record_id,
            user_id,
            outcome.model,
            outcome.api_version,
            len(outcome.attempts),
        )
        return record

    def history(self, user_id: str, limit: int | None = None) -> list[IdentificationRecord]:
        return self.store.find_by_user(user_id, limit)

    def recent(self, limit: int | None = None) -> list[IdentificationRecord]:
        return self.store.find_all(limit)


__all__ = ["EmptyUploadError", "IdentificationService"]
