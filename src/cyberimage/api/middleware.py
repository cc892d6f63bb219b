"""Origin-checking CORS middleware.

:class:`PolicyCORSMiddleware` extends Starlette's ``CORSMiddleware``:

- Before anything else runs, the request's ``Origin`` header is checked
  against the :class:`~cyberimage.core.origins.OriginPolicy`.  A denied
  origin gets a 403 with the standard error body and never reaches routing
  or handler code.
- A request whose ``Origin`` matches its own scheme and ``Host`` is same-origin
  and skips the policy entirely.
- Header generation (``Access-Control-Allow-Origin``, preflight answers)
  asks the same policy instead of a static origin list.
"""

from __future__ import annotations

from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from cyberimage.core.exceptions import OriginDeniedError
from cyberimage.core.gateway import utc_timestamp
from cyberimage.core.origins import OriginPolicy, is_same_origin


class PolicyCORSMiddleware(CORSMiddleware):
    """CORS middleware driven by an :class:`OriginPolicy`.

    Args:
        app: The wrapped ASGI application.
        policy: Origin policy consulted for every request.
    """

    def __init__(self, app: ASGIApp, policy: OriginPolicy) -> None:
        super().__init__(
            app,
            allow_origins=(),
            allow_methods=("GET", "POST", "OPTIONS"),
            allow_headers=("Content-Type", "Authorization"),
            allow_credentials=True,
            max_age=600,
        )
        self.policy = policy

    def is_allowed_origin(self, origin: str) -> bool:
        return self.policy.permits(origin)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        origin = headers.get("origin")
        if origin and is_same_origin(origin, scope.get("scheme", "http"), headers.get("host")):
            # Same-origin requests are not subject to the cross-origin policy.
            await self.app(scope, receive, send)
            return

        try:
            self.policy.enforce(origin)
        except OriginDeniedError as exc:
            response = JSONResponse(
                status_code=exc.status_code,
                content={
                    "success": False,
                    "error": exc.public_message,
                    "timestamp": utc_timestamp(),
                },
            )
            await response(scope, receive, send)
            return

        await super().__call__(scope, receive, send)
