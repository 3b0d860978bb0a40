"""FastAPI application: identity intake, service info and the MCP mount."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from courtbook.core.auth import AUTH_KEY_PREFIX
from courtbook.core.tools import GATED_TOOLS, PUBLIC_TOOLS, ToolFacade, tool_list
from courtbook.server.mcp_app import build_tool_server
from courtbook.utils.exceptions import AuthorizationError, CourtbookError

logger = logging.getLogger(__name__)


class IdentityAssertion(BaseModel):
    """Payload posted by the sign-in front end after the OAuth flow."""

    model_config = ConfigDict(populate_by_name=True)

    subject_id: str = Field(alias="subjectId")
    subject_email: str = Field(alias="subjectEmail")
    verified: bool = False
    session_token: str | None = Field(default=None, alias="sessionToken")


def _service_info(facade: ToolFacade) -> str:
    public = tool_list(PUBLIC_TOOLS)
    gated = tool_list(GATED_TOOLS)
    users = ", ".join(facade.config.authorized_emails) or "none configured"
    return f"""SF Tennis Court Booking MCP Server

Public tools:
{public}

Protected tools (authentication required):
{gated}

Authentication:
- Authentication URL: {facade.config.auth_url}
- Authorized users: {users}

MCP endpoint (SSE): /mcp/sse

To authenticate: Visit {facade.config.auth_url}"""


def create_app(facade: ToolFacade, mount_tools: bool = True) -> FastAPI:
    """Create the HTTP application around a tool facade.

    Args:
        facade: Tool facade shared by the HTTP routes and the MCP tools.
        mount_tools: Mount the MCP tool server (SSE transport) under /mcp.

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("courtbook server starting")
        yield
        logger.info("courtbook server shutting down")
        await facade.shutdown()

    app = FastAPI(title="courtbook", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=86400,
    )

    @app.post("/authenticate")
    async def authenticate(request: Request) -> PlainTextResponse:
        """Register a verified identity from the sign-in front end."""
        try:
            payload = await request.json()
            assertion = IdentityAssertion.model_validate(payload)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Malformed identity assertion: {e}")
            return PlainTextResponse(f"Authentication error: {e}", status_code=500)

        try:
            await facade.authenticate(
                assertion.subject_id, assertion.subject_email, assertion.verified
            )
        except AuthorizationError as e:
            return PlainTextResponse(str(e), status_code=403)
        except CourtbookError as e:
            logger.error(f"Authentication error: {e}")
            return PlainTextResponse(f"Authentication error: {e}", status_code=500)
        return PlainTextResponse("Authentication successful")

    @app.get("/debug-sessions")
    async def debug_sessions() -> JSONResponse:
        """List the authorization records that are currently fresh."""
        try:
            records = await facade.authorizations.active()
        except CourtbookError as e:
            return JSONResponse({"error": str(e)}, status_code=500)
        sessions = [
            {
                "key": f"{AUTH_KEY_PREFIX}{record.subject_id}",
                "email": record.subject_email,
                "issuedAt": datetime.fromtimestamp(
                    record.issued_at, tz=timezone.utc
                ).isoformat(),
            }
            for record in records
        ]
        return JSONResponse({"totalSessions": len(sessions), "sessions": sessions})

    @app.get("/")
    async def root() -> PlainTextResponse:
        return PlainTextResponse(_service_info(facade))

    if mount_tools:
        app.mount("/mcp", build_tool_server(facade).sse_app())

    return app
