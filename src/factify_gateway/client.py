"""Forwarding client for the inference host (Hugging Face Inference API by default)."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from http.cookiejar import DefaultCookiePolicy
from typing import Optional

from fastapi import Depends
from requests import Response, Session
from requests.exceptions import RequestException, Timeout

from .config import Settings, UpstreamSettings, settings_dependency
from .monitoring import record_upstream_call

logger = logging.getLogger(__name__)

IMAGE_RESOURCE_FILENAME = "text.jpeg"


class UpstreamError(RuntimeError):
    """Raised when the inference host answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class BinaryResource:
    """In-memory upload body with a fixed filename."""

    content: bytes
    filename: str = IMAGE_RESOURCE_FILENAME

    @classmethod
    def from_text(cls, text: str) -> "BinaryResource":
        return cls(content=text.encode("utf-8"))

    def __len__(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ForwardResult:
    """Outcome of one upstream call.

    ``body`` holds the raw upstream body on success. On failure ``error`` holds
    the failure message and ``error_kind`` one of ``transport``, ``timeout``,
    ``encoding`` or ``upstream_status``.
    """

    body: str = ""
    error: Optional[str] = None
    error_kind: Optional[str] = None
    upstream_status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_payload(self) -> str:
        if self.ok:
            return self.body
        return f"Error: {self.error}"

    @classmethod
    def failure(cls, message: str, kind: str, upstream_status: Optional[int] = None) -> "ForwardResult":
        return cls(error=message, error_kind=kind, upstream_status=upstream_status)


@dataclass(frozen=True)
class InferenceConfig:
    scheme: str
    host: str
    models_path: str
    timeout: float
    verify: bool
    user_agent: str

    def build_url(self, model: str) -> str:
        """Compose ``<scheme>://<host><models_path>/<model>``; the model id is kept verbatim."""
        prefix = "/" + self.models_path.strip("/") if self.models_path.strip("/") else ""
        return f"{self.scheme}://{self.host.rstrip('/')}{prefix}/{model}"

    @classmethod
    def from_settings(cls, upstream: UpstreamSettings) -> "InferenceConfig":
        return cls(
            scheme=upstream.scheme,
            host=upstream.host,
            models_path=upstream.models_path,
            timeout=upstream.timeout_sec,
            verify=upstream.verify_tls,
            user_agent=upstream.user_agent,
        )


class InferenceClient:
    """Posts analysis payloads to ``/models/{model}`` with the caller's bearer token.

    Credentials are passed per call and never stored on the session, so one
    client instance can serve concurrent requests for different callers.
    """

    def __init__(self, config: InferenceConfig, session: Session | None = None):
        self._config = config
        if session is None:
            session = Session()
            # Upstream cookies must not leak between callers sharing this session.
            session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
        self._session = session
        self._session.headers["User-Agent"] = config.user_agent

    @property
    def config(self) -> InferenceConfig:
        return self._config

    def send_text(self, text: str, api_key: str, model: str) -> str:
        return self.forward_text(text, api_key, model).as_payload()

    def send_image(self, resource: BinaryResource, api_key: str, model: str, text: str) -> str:
        return self.forward_image(resource, api_key, model, text).as_payload()

    def forward_text(self, text: str, api_key: str, model: str) -> ForwardResult:
        # Raw text, not a JSON document, despite the content type.
        return self._post("text", model, api_key, "application/json", text)

    def forward_image(self, resource: BinaryResource, api_key: str, model: str, text: str) -> ForwardResult:
        logger.debug("Forwarding %s (%d bytes) for caption of %d chars", resource.filename, len(resource), len(text))
        return self._post("image", model, api_key, "image/jpeg", resource.content)

    def _post(self, kind: str, model: str, api_key: str, content_type: str, body: str | bytes) -> ForwardResult:
        url = self._config.build_url(model)
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": content_type,
        }

        started = time.perf_counter()
        try:
            # Encoded here so lone surrogates fail as a softened "encoding" error.
            data = body.encode("utf-8") if isinstance(body, str) else body
            response = self._session.post(
                url,
                data=data,
                headers=headers,
                timeout=self._config.timeout,
                verify=self._config.verify,
            )
            self._ensure_success(response, url)
        except Timeout as exc:
            result = ForwardResult.failure(str(exc), "timeout")
        except UpstreamError as exc:
            result = ForwardResult.failure(str(exc), "upstream_status", exc.status_code)
        except RequestException as exc:  # noqa: BLE001
            result = ForwardResult.failure(str(exc), "transport")
        except UnicodeError as exc:
            # Unencodable text bodies, or non latin-1 api keys in the header.
            result = ForwardResult.failure(str(exc), "encoding")
        else:
            result = ForwardResult(body=self._decode(response), upstream_status=response.status_code)

        elapsed = time.perf_counter() - started
        record_upstream_call(kind, "success" if result.ok else result.error_kind or "error", elapsed)
        if not result.ok:
            logger.warning("%s forward to %s failed (%s): %s", kind, url, result.error_kind, result.error)
        return result

    def _ensure_success(self, response: Response, url: str) -> None:
        if response.status_code >= 400:
            status_line = " ".join(str(part) for part in (response.status_code, response.reason) if part)
            raise UpstreamError(f"{status_line} from POST {url}", response.status_code)

    def _decode(self, response: Response) -> str:
        if not response.encoding:
            response.encoding = "utf-8"
        return response.text


# One client (and Session) serves every threadpool worker. requests does not
# guarantee Session thread safety; it holds up here because calls only read
# the session (per-call headers, cookies blocked) and never mutate it.
@lru_cache
def _cached_client(config: InferenceConfig) -> InferenceClient:
    return InferenceClient(config)


def get_inference_client(settings: Settings) -> InferenceClient:
    """Return a cached client for the upstream section of ``settings``."""

    return _cached_client(InferenceConfig.from_settings(settings.upstream))


def client_dependency(settings: Settings = Depends(settings_dependency)) -> InferenceClient:
    return get_inference_client(settings)
