"""CORS middleware and session cookie security."""
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from modqueue.config import settings


def setup_cors(app: FastAPI) -> None:
    """Register CORS middleware with allowed origins from settings."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOWED_ORIGINS.split(","),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )


def _harden(cookie: str, secure: bool) -> str:
    if "samesite" not in cookie.lower():
        # Lax: the editor is reached by top-level navigation and needs the session
        cookie += "; SameSite=Lax"
    if secure and "secure" not in cookie.lower():
        cookie += "; Secure"
    if "httponly" not in cookie.lower():
        cookie += "; HttpOnly"
    return cookie


class CookieSecurityMiddleware(BaseHTTPMiddleware):
    """Add SameSite/HttpOnly (and Secure in production) to every Set-Cookie.

    The only cookie the service sets is the visitor session cookie, which
    carries the anonymous preload identity.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)

        raw_cookies = response.headers.getlist("set-cookie") if hasattr(response.headers, "getlist") else []
        if raw_cookies:
            secure = settings.APP_ENV == "production"
            # MutableHeaders can't replace repeated headers, rebuild the raw list
            new_headers = [
                (k, v)
                for k, v in response.raw_headers
                if k.lower() != b"set-cookie"
            ]
            for cookie in raw_cookies:
                new_headers.append((b"set-cookie", _harden(cookie, secure).encode("latin-1")))
            response.raw_headers = new_headers  # type: ignore[attr-defined]

        return response


def setup_cookie_security(app: FastAPI) -> None:
    """Register the cookie security middleware."""
    app.add_middleware(CookieSecurityMiddleware)
