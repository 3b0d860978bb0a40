"""MCP tool server exposing the tool facade.

Each tool is a thin async function over ToolFacade and returns text.
"""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from courtbook.core.tools import ToolFacade

SERVER_NAME = "Tennis Court Booking"


def build_tool_server(facade: ToolFacade) -> FastMCP:
    """Register the seven courtbook tools on a new FastMCP server.

    Args:
        facade: Tool facade the tools delegate to.

    Returns:
        FastMCP server, ready to run over stdio or mount as an SSE app.
    """
    server = FastMCP(SERVER_NAME)

    @server.tool()
    async def check_availability(
        date: str | None = None,
        court: str | None = None,
        time: str | None = None,
    ) -> str:
        """Check open tennis court slots.

        Args:
            date: YYYY-MM-DD, "today" or "tomorrow" (default tomorrow).
            court: Court name (default from configuration).
            time: Optional time to look for, e.g. "2pm".
        """
        return await facade.check_availability(date=date, court=court, time=time)

    @server.tool()
    async def start_booking(court: str, time: str, date: str | None = None) -> str:
        """Start booking a court and request an SMS verification code.

        Requires authentication. Finish with submit_verification_code.

        Args:
            court: Court name, e.g. "DuPont".
            time: Start time, e.g. "2pm" or "2:00 PM".
            date: YYYY-MM-DD, "today" or "tomorrow" (default tomorrow).
        """
        return await facade.start_booking(court=court, time=time, date=date)

    @server.tool()
    async def submit_verification_code(code: str) -> str:
        """Complete the pending booking with the SMS code you received.

        Requires authentication.
        """
        return await facade.submit_verification_code(code=code)

    @server.tool()
    async def list_booking_history(days: int | None = None) -> str:
        """List your completed bookings.

        Requires authentication.

        Args:
            days: Number of days to look back (default 30).
        """
        return await facade.list_booking_history(days=days)

    @server.tool()
    async def auth_status() -> str:
        """Report whether an authorization is currently active."""
        return await facade.auth_status()

    @server.tool()
    async def get_auth_url() -> str:
        """Return the link used to authenticate."""
        return await facade.get_auth_url()

    @server.tool()
    async def diagnostic() -> str:
        """Smoke-test the automation browser."""
        return await facade.diagnostic()

    return server
