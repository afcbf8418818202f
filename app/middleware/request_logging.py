"""요청 로깅 미들웨어.

Request logging middleware.
Writes one structured access log line per request through stdlib logging
and, when Axiom credentials are configured, ingests the same event into Axiom.
Logs: method, path, params, masked request body, status code, duration, error detail.
Sensitive fields (password, token, secret) are masked before anything is emitted.
"""

import json
import logging
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings

logger = logging.getLogger("app.access")

# 마스킹 대상 필드 패턴: Keys whose values never reach the logs
_SENSITIVE_KEYS = re.compile(
    r"(password|passwd|secret|token|authorization|api_key|apikey|credential)",
    re.IGNORECASE,
)

# 로깅 제외 경로: Paths excluded from logging
_SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

_MAX_DETAIL_LEN: int = 500


def mask_sensitive(data: Any, depth: int = 0) -> Any:
    """민감 필드 마스킹: Recursively mask sensitive keys in dicts/lists."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            k: "***" if _SENSITIVE_KEYS.search(str(k)) else mask_sensitive(v, depth + 1)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive(item, depth + 1) for item in data[:20]]
    if isinstance(data, str) and len(data) > 2000:
        return data[:2000] + "...(truncated)"
    return data


def _error_detail(body: bytes) -> Any:
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return body.decode("utf-8", errors="replace")[:_MAX_DETAIL_LEN]
    detail = data.get("detail", data) if isinstance(data, dict) else data
    if isinstance(detail, str) and len(detail) > _MAX_DETAIL_LEN:
        detail = detail[:_MAX_DETAIL_LEN] + "..."
    return detail


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """모든 API 요청/응답을 로깅하는 미들웨어.

    Logs every API request and response. Error responses are buffered so
    their detail (e.g. the failed step of a merge) can be attached to the event.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET

        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        request_body: Any = None
        if method in ("POST", "PUT", "PATCH"):
            body_bytes = await request.body()
            if body_bytes:
                try:
                    request_body = mask_sensitive(json.loads(body_bytes))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    request_body = "(non-json body)"

        error_detail: Any = None
        status_code: int = 500
        try:
            response = await call_next(request)
            status_code = response.status_code

            if status_code >= 400:
                resp_body = b""
                async for chunk in response.body_iterator:
                    resp_body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
                error_detail = _error_detail(resp_body)

                # 소비한 body를 다시 응답으로 반환: Re-wrap the consumed body
                response = Response(
                    content=resp_body,
                    status_code=status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            error_detail = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            event: dict[str, Any] = {
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
            }
            if request.query_params:
                event["query_params"] = mask_sensitive(dict(request.query_params))
            if request.path_params:
                event["path_params"] = dict(request.path_params)
            if request_body is not None:
                event["request_body"] = request_body
            if error_detail is not None:
                event["error"] = error_detail

            self._emit(event)

        return response

    def _emit(self, event: dict[str, Any]) -> None:
        level = logging.ERROR if event["status_code"] >= 500 else (
            logging.WARNING if event["status_code"] >= 400 else logging.INFO
        )
        logger.log(level, "%s %s %s", event["method"], event["path"], event["status_code"], extra=event)

        if self._client is None:
            return
        # 로깅 실패가 요청 처리에 영향주지 않도록: Never break a request on log failure
        try:
            self._client.ingest_events(self._dataset, [event])
        except Exception:
            logger.warning("Axiom ingest failed", exc_info=True)
