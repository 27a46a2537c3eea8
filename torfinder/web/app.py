"""FastAPI app exposing search, cache check and add-to-TorBox for web clients."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, Header, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field, ValidationError as SchemaError

from .. import __version__
from ..core.errors import AuthError, FinderError, ValidationError
from .runtime import FinderRuntime, build_runtime


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ProviderQuery(BaseModel):
    q: str = Field(min_length=1)
    provider: str = "torbox"
    limit: int = Field(50, ge=1, le=100)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _passthrough(upstream) -> Response:
    return Response(
        content=upstream.text,
        status_code=upstream.status_code,
        media_type=upstream.content_type or "application/json",
    )


def _require_credential(authorization: Optional[str]) -> str:
    value = (authorization or "").strip()
    # a bare scheme carries no token
    if not value or value.lower() == "bearer":
        raise AuthError("Missing Authorization")
    return value


def create_app(runtime: Optional[FinderRuntime] = None) -> FastAPI:
    runtime = runtime or build_runtime()

    app = FastAPI(title="TorBox Torrent Finder API", version=__version__)

    @app.exception_handler(FinderError)
    async def finder_error_handler(request: Request, exc: FinderError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.message}")
        return _error(exc.message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error("Bad request", 400)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.opt(exception=exc).error(f"{request.method} {request.url.path} failed")
        return _error("Internal error", 500)

    @app.get("/health")
    def health() -> Dict:
        return {"ok": True, "time": _utc_now_iso()}

    @app.get("/providers")
    def providers() -> Dict:
        return {"providers": runtime.source_manager.providers()}

    @app.get("/search")
    def search(
        q: str = Query(""),
        provider: str = Query(""),
        limit: str = Query(""),
    ) -> Dict:
        try:
            params = ProviderQuery(
                q=q,
                provider=provider or runtime.settings.get("default_provider", "torbox"),
                limit=limit or runtime.settings.get("default_limit", 50),
            )
        except SchemaError:
            raise ValidationError("Bad query") from None
        results = runtime.source_manager.search(params.q, params.provider, params.limit)
        return {"items": [r.to_dict() for r in results]}

    @app.post("/check-cached")
    def check_cached(
        body: Any = Body(default=None),  # noqa: B008
        authorization: Optional[str] = Header(None),
    ) -> Response:
        credential = _require_credential(authorization)
        hashes = body.get("hashes") if isinstance(body, dict) else None
        if not isinstance(hashes, list) or not hashes:
            raise ValidationError("No hashes")
        cleaned: List[str] = [str(h).strip() for h in hashes if str(h).strip()]
        if not cleaned:
            raise ValidationError("No hashes")
        upstream = runtime.torbox.check_cached(cleaned, credential)
        return _passthrough(upstream)

    @app.post("/add")
    def add(
        body: Any = Body(default=None),  # noqa: B008
        authorization: Optional[str] = Header(None),
    ) -> Response:
        credential = _require_credential(authorization)
        magnet = body.get("magnet") if isinstance(body, dict) else None
        if not isinstance(magnet, str) or not magnet.strip():
            raise ValidationError("Missing magnet")
        upstream = runtime.gateway.submit(magnet, credential)
        return _passthrough(upstream)

    return app


app = create_app()
