"""Access gate middleware — redirects page requests the user may not see.

Pure ASGI rather than BaseHTTPMiddleware, so refreshed session cookies can be
appended to the downstream response headers without buffering the body.
"""

from typing import Any

from starlette.requests import HTTPConnection
from starlette.responses import RedirectResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from app.core.access_control import AccessController
from app.core.routes import is_passthrough
from app.services.session_service import cookie_headers


class AccessControlMiddleware:
    def __init__(self, app: ASGIApp, controller: AccessController) -> None:
        self.app = app
        self.controller = controller

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or is_passthrough(scope["path"]):
            await self.app(scope, receive, send)
            return

        conn = HTTPConnection(scope)
        outcome = await self.controller.evaluate(scope["path"], conn.cookies)

        # Downstream handlers can read the resolved session from request.state
        state = scope.setdefault("state", {})
        state["session"] = outcome.session
        state["access_profile"] = outcome.profile

        if outcome.decision.is_redirect:
            response = RedirectResponse(outcome.decision.location, status_code=307)
            for cookie in outcome.cookies:
                cookie.apply(response)
            await response(scope, receive, send)
            return

        if not outcome.cookies:
            await self.app(scope, receive, send)
            return

        extra_headers = cookie_headers(outcome.cookies)

        async def send_wrapper(message: Any) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.extend(extra_headers)
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_wrapper)
