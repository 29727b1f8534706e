from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from unison_board.board import BoardActor
from unison_board.schemas import PostMessageRequest, RefreshTokenRequest

_bearer = HTTPBearer(auto_error=False)


def _ok(data: Any) -> JSONResponse:
    return JSONResponse({"success": True, "data": data})


def _fail(status_code: int, error: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": error}, status_code=status_code)


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        field = ".".join(str(p) for p in error.get("loc", ())[1:]) or "body"
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request."


def _client_ip(request: Request, cf_ip: Optional[str], forwarded_for: Optional[str]) -> Optional[str]:
    if cf_ip and cf_ip.strip():
        return cf_ip.strip()
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if request.client is not None:
        return request.client.host
    return None


def create_app(actor: BoardActor, *, default_page_limit: int = 20, max_page_limit: int = 100) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await actor.start()
        try:
            yield
        finally:
            await actor.close()

    app = FastAPI(
        title="Unison Board",
        version="0.1.0",
        description="Anonymous message board backed by a single board actor",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        message = _describe_validation_error(exc)
        logger.debug(f"Rejected {request.method} {request.url.path}: {message}")
        return _fail(400, message)

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    @app.get("/api/messages")
    async def get_messages(
        limit: Optional[int] = Query(None, gt=0),
        cursor_timestamp: Optional[str] = Query(None, alias="cursorTimestamp"),
        cursor_id: Optional[str] = Query(None, alias="cursorId"),
    ):
        effective_limit = min(limit or default_page_limit, max_page_limit)
        page = await actor.get_messages(effective_limit, cursor_timestamp, cursor_id)
        return _ok(page.to_wire())

    @app.post("/api/messages")
    async def add_message(
        payload: PostMessageRequest,
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
        cf_connecting_ip: Optional[str] = Header(None, alias="CF-Connecting-IP"),
        x_forwarded_for: Optional[str] = Header(None, alias="X-Forwarded-For"),
    ):
        try:
            if credentials is None or not await actor.validate_token(credentials.credentials):
                return _fail(401, "Authentication required or session expired.")

            client_ip = _client_ip(request, cf_connecting_ip, x_forwarded_for)
            if not client_ip:
                logger.warning("Client IP missing; cannot apply rate limit")
                return _fail(400, "Could not determine client IP for rate limiting.")

            if not await actor.check_and_apply_rate_limit(client_ip):
                return _fail(429, "Too many requests. Please wait a moment before posting again.")

            messages = await actor.add_message(payload.text, payload.author_tag)
            return _ok([m.to_record() for m in messages])
        except Exception as ex:
            logger.exception(f"Error adding message: {ex}")
            return _fail(500, "Failed to add message.")

    @app.post("/api/token")
    async def create_token():
        session = await actor.create_session()
        if session is None:
            return _fail(503, "Too many active sessions. Please try again later.")
        return _ok(session.to_wire())

    @app.post("/api/token/refresh")
    async def refresh_token(payload: RefreshTokenRequest):
        session = await actor.refresh_token(payload.token)
        if session is None:
            return _fail(401, "Session is invalid or has expired.")
        return _ok(session.to_wire())

    return app
