from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from .auth import current_user
from .schemas import ErrorResponse, IdentificationResponse, ModelCandidatesResponse
from .service import EmptyUploadError, IdentificationService
from ..ai import AllCandidatesExhausted, Classifier
from ..datalake.storage import FileSystemRecordStore, RecordStore


logger = logging.getLogger(__name__)

_DEFAULT_LIST_LIMIT = 50
_MAX_LIST_LIMIT = 200


def _clamp_limit(limit: int) -> int:
    return max(0, min(limit, _MAX_LIST_LIMIT))


def create_app(
    classifier: Classifier,
    root_dir: Path | None = None,
    store: RecordStore | None = None,
) -> FastAPI:
    record_store = store or FileSystemRecordStore(root=root_dir or Path("data/identifications"))
    service = IdentificationService(classifier=classifier, store=record_store)

    app = FastAPI(title="Image Identifier API", version="0.1.0")
    app.state.classifier = classifier
    app.state.record_store = record_store
    app.state.service = service

    logger.info(
        "API server initialised classifier=%s store=%s",
        classifier.__class__.__name__,
        getattr(record_store, "root", record_store.__class__.__name__),
    )

    @app.get("/health", response_model=dict[str, str])
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @app.post(
        "/v1/identify",
        response_model=IdentificationResponse,
        status_code=201,
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            502: {"model": ErrorResponse},
        },
    )
    async def identify_image(
        image: UploadFile = File(...),
        user_id: str = Depends(current_user),
    ) -> IdentificationResponse:
        image_bytes = await image.read()
        try:
            record = await run_in_threadpool(
                service.identify,
                image_bytes,
                image.content_type,
                image.filename,
                user_id,
            )
        except EmptyUploadError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except AllCandidatesExhausted as exc:
            logger.error("Identification exhausted all candidates user=%s: %s", user_id, exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return IdentificationResponse.from_record(record)

    @app.get("/v1/identifications", response_model=List[IdentificationResponse])
    def list_user_identifications(
        limit: int = _DEFAULT_LIST_LIMIT,
        user_id: str = Depends(current_user),
    ) -> List[IdentificationResponse]:
        records = service.history(user_id, _clamp_limit(limit))
        return [IdentificationResponse.from_record(record) for record in records]

    @app.get("/v1/identifications/all", response_model=List[IdentificationResponse])
    def list_all_identifications(
        limit: int = _DEFAULT_LIST_LIMIT,
        user_id: str = Depends(current_user),
    ) -> List[IdentificationResponse]:
        records = service.recent(_clamp_limit(limit))
        logger.debug("Listing all identifications requested_by=%s count=%d", user_id, len(records))
        return [IdentificationResponse.from_record(record) for record in records]

    @app.get("/v1/models", response_model=ModelCandidatesResponse)
    def list_model_candidates() -> ModelCandidatesResponse:
        settings = getattr(classifier, "settings", None)
        if settings is None:
            return ModelCandidatesResponse(models=[], api_versions=[])
        return ModelCandidatesResponse(
            models=list(settings.models_to_try),
            api_versions=list(settings.api_versions),
        )

    return app


__all__ = ["create_app"]
