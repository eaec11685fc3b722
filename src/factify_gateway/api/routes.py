"""API route definitions for the analysis gateway."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from fastapi.responses import PlainTextResponse

from ..client import BinaryResource, ForwardResult, InferenceClient, client_dependency
from ..config import Settings, settings_dependency
from ..errors import ERRORS, raise_error
from ..monitoring import record_rejected
from .schemas import TextAnalysisRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/analyze", tags=["analyze"])


def _reject(kind: str, detail: str) -> None:
    record_rejected(kind)
    raise_error("ERR_BAD_REQUEST", detail=detail)


async def _submitted_fields(request: Request) -> frozenset[str]:
    # FastAPI has already parsed the form; this returns the cached copy.
    # Needed because Form() maps an absent part and an empty one to the same default.
    form = await request.form()
    return frozenset(form.keys())


def _resolve_model(model: str, settings: Settings) -> str:
    return model or settings.upstream.default_model or model


def _respond(result: ForwardResult, settings: Settings) -> PlainTextResponse:
    status_code = status.HTTP_200_OK
    if not result.ok and settings.upstream.error_mode == "status":
        status_code = ERRORS.get("ERR_UPSTREAM_FAILED").http_status
    return PlainTextResponse(result.as_payload(), status_code=status_code)


def _validate_text_request(payload: TextAnalysisRequest) -> None:
    if not payload.text:
        _reject("text", "text is required")
    if not payload.enable_options:
        _reject("text", "enableOptions must contain at least one option")
    if not payload.api_key:
        _reject("text", "apikey is required")


@router.post("/text", response_class=PlainTextResponse)
def analyze_text(
    payload: TextAnalysisRequest,
    settings: Settings = Depends(settings_dependency),
    client: InferenceClient = Depends(client_dependency),
) -> PlainTextResponse:
    _validate_text_request(payload)

    model = _resolve_model(payload.model, settings)
    result = client.forward_text(payload.text, payload.api_key, model)
    return _respond(result, settings)


@router.post("/image", response_class=PlainTextResponse)
def analyze_image(
    file: UploadFile | None = File(None),
    apikey: str = Form(""),
    model: str = Form(""),
    text: str = Form(""),
    submitted: frozenset[str] = Depends(_submitted_fields),
    settings: Settings = Depends(settings_dependency),
    client: InferenceClient = Depends(client_dependency),
) -> PlainTextResponse:
    file_bytes = file.file.read() if file is not None else b""

    if not text:
        _reject("image", "text is required")
    if not file_bytes:
        _reject("image", "file is missing or empty")
    if not apikey:
        _reject("image", "apikey is required")
    if "model" not in submitted:
        _reject("image", "model is required")

    if settings.upstream.image_payload_source == "file":
        resource = BinaryResource(content=file_bytes)
    else:
        # Suspect but long-standing: the caption is sent as the image body.
        logger.warning(
            "Image forward sends the text field as the body; uploaded %s (%d bytes) is discarded",
            file.filename,
            len(file_bytes),
        )
        # Multipart text that is not valid UTF-8 arrives latin-1 decoded from
        # Starlette and is re-encoded as UTF-8 here.
        resource = BinaryResource.from_text(text)

    result = client.forward_image(resource, apikey, _resolve_model(model, settings), text)
    return _respond(result, settings)


@router.get("/health")
def health() -> Response:
    return Response(status_code=status.HTTP_200_OK)
