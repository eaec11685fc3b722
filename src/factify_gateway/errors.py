"""Error code registry and the exception used to short-circuit requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErrorCodeSpec:
    code: str
    en: str
    http_status: int


class ErrorRegistry:
    def __init__(self) -> None:
        self._codes: Dict[str, ErrorCodeSpec] = {}

    def register(self, spec: ErrorCodeSpec) -> None:
        if spec.code in self._codes:
            raise ValueError(f"Error code {spec.code} already registered")
        self._codes[spec.code] = spec

    def get(self, code: str) -> ErrorCodeSpec:
        if code not in self._codes:
            raise KeyError(f"Unknown error code: {code}")
        return self._codes[code]

    def to_dict(self) -> Dict[str, ErrorCodeSpec]:
        return dict(self._codes)


ERRORS = ErrorRegistry()


def register_default_errors() -> None:
    ERRORS.register(
        ErrorCodeSpec(
            code="ERR_BAD_REQUEST",
            en="Missing or empty required field",
            http_status=status.HTTP_400_BAD_REQUEST,
        )
    )
    ERRORS.register(
        ErrorCodeSpec(
            code="ERR_UPSTREAM_FAILED",
            en="Inference host call failed",
            http_status=status.HTTP_502_BAD_GATEWAY,
        )
    )


register_default_errors()


class GatewayError(Exception):
    """Carries a registered error code up to the exception handler."""

    def __init__(self, spec: ErrorCodeSpec, detail: Optional[str] = None) -> None:
        super().__init__(detail or spec.en)
        self.spec = spec
        self.detail = detail or spec.en


def raise_error(code: str, *, detail: Optional[str] = None) -> None:
    raise GatewayError(ERRORS.get(code), detail)


async def gateway_error_handler(request: Request, exc: GatewayError) -> Response:
    # Clients only ever see the status; the reason stays in the log.
    logger.info(
        "Rejected %s %s: %s (%s)",
        request.method,
        request.url.path,
        exc.detail,
        exc.spec.code,
    )
    return Response(status_code=exc.spec.http_status)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    spec = ERRORS.get("ERR_BAD_REQUEST")
    # Only locations and types; raw inputs may hold the caller's api key.
    problems = [(".".join(str(part) for part in err.get("loc", ())), err.get("type")) for err in exc.errors()]
    logger.info("Unparseable %s %s: %s", request.method, request.url.path, problems)
    return Response(status_code=spec.http_status)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
