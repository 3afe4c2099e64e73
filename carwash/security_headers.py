"""
Security Headers Middleware

The API only ever returns JSON to the web and mobile apps, so every response
gets the same locked-down header set: no framing, no sniffing, no browser
features and no caching of authenticated data.
"""

import logging
import os
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

IS_PRODUCTION = os.getenv("ENVIRONMENT", "development").lower() == "production"

# Location is sent in request bodies by the apps, never read from the browser
DISABLED_FEATURES = ("accelerometer", "camera", "geolocation", "gyroscope", "microphone", "payment", "usb")


def build_api_headers(production: bool = IS_PRODUCTION) -> dict[str, str]:
    headers = {
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
        "Permissions-Policy": ", ".join(f"{feature}=()" for feature in DISABLED_FEATURES),
    }
    if production:
        headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = tuple(exclude_paths or ())
        self.api_headers = build_api_headers()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        if request.url.path.startswith(self.exclude_paths):
            return response

        response.headers.update(self.api_headers)
        # Endpoints that set their own caching keep it
        response.headers.setdefault("Cache-Control", "no-store")
        return response
