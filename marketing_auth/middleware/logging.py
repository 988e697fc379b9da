# marketing_auth/middleware/logging.py
import time
import uuid
from typing import Iterable, Optional
from urllib.parse import parse_qs, urlsplit

from starlette.types import ASGIApp, Message, Receive, Scope, Send
import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

logger = structlog.get_logger("http")


def configure_structlog():
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
    )


def platform_from_path(path: str, platforms: Iterable[str]) -> Optional[str]:
    """The platform an /auth/... path acts on, e.g. /auth/verify/google/42 -> google."""
    segments = path.strip("/").split("/")
    if segments[0] != "auth":
        return None
    for segment in segments[1:]:
        if segment in platforms:
            return segment
    return None


def callback_outcome(message: Message) -> Optional[str]:
    # callbacks redirect to /?platform=...&status=connected|error
    for name, value in message.get("headers", []):
        if name.lower() == b"location":
            status = parse_qs(urlsplit(value.decode("latin-1")).query).get("status")
            return status[0] if status else None
    return None


class OAuthRequestLogMiddleware:
    """
    Tags every request with a request id and, for /auth routes, the platform it
    touches. Logs one http_request_finished event per request, with the
    connected/error outcome when the response is a callback redirect.
    """

    def __init__(self, app: ASGIApp, platforms: Iterable[str] = (), header_name: str = "X-Request-ID"):
        self.app = app
        self.platforms = frozenset(platforms)
        self.header_name = header_name.lower().encode("latin-1")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.monotonic()
        headers = dict(scope.get("headers", []))
        req_id = headers.get(self.header_name, b"").decode("latin-1") or str(uuid.uuid4())
        status_code = None
        outcome = None

        async def send_wrapper(message):
            nonlocal status_code, outcome
            if message["type"] == "http.response.start":
                status_code = message["status"]
                outcome = callback_outcome(message)
            await send(message)

        bind_contextvars(request_id=req_id, path=scope["path"], method=scope["method"])
        platform = platform_from_path(scope["path"], self.platforms)
        if platform:
            bind_contextvars(platform=platform)
        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            logger.exception("http_request_exception", error=str(exc))
            raise
        finally:
            duration_ms = int((time.monotonic() - start) * 1000)
            logger.info("http_request_finished", status_code=status_code, outcome=outcome, duration_ms=duration_ms)
            clear_contextvars()
