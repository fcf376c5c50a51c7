"""
TrustMesh MCP Server

Exposes the TrustMesh tools via Model Context Protocol so agents running
in MCP-compatible clients can register, discover peers, and run missions.

Usage:
    # Stdio transport (for Claude Desktop, Cursor, etc.)
    python -m trustmesh.mcp

    # HTTP transport
    python -m trustmesh.mcp --transport http --port 8091
"""

import functools
import inspect
import json
from typing import Optional

try:
    from mcp.server.fastmcp import FastMCP
    MCP_AVAILABLE = True
except ImportError:
    MCP_AVAILABLE = False
    FastMCP = None

from ..log import configure_logging
from ..service import TrustMesh
from .tools import TrustMeshTools


def _text_tool(tools: TrustMeshTools, name: str):
    """Wrap a tool method so it returns the dispatcher's text output."""
    method = getattr(tools, name)
    signature = inspect.signature(method)

    @functools.wraps(method)
    def tool(*args, **kwargs) -> str:
        bound = signature.bind(*args, **kwargs)
        return tools.call(name, dict(bound.arguments))

    return tool


def create_mcp_server(mesh: Optional[TrustMesh] = None) -> "FastMCP":
    """
    Create an MCP server for TrustMesh.

    Args:
        mesh: Services to expose (built from environment settings if omitted)

    Returns:
        Configured FastMCP instance
    """
    if not MCP_AVAILABLE:
        raise ImportError(
            "MCP SDK not installed. Install with: pip install mcp or pip install trustmesh[mcp]"
        )

    mesh = mesh or TrustMesh.from_env()
    tools = TrustMeshTools(mesh)
    mcp = FastMCP("TrustMesh")

    # ==================== TOOLS ====================

    for name in TrustMeshTools.TOOL_NAMES:
        method = getattr(tools, name)
        mcp.add_tool(_text_tool(tools, name), name=name, description=inspect.getdoc(method))

    # ==================== RESOURCES ====================

    @mcp.resource("trustmesh://agents")
    def agents_resource() -> str:
        """All registered agents."""
        return json.dumps([a.to_dict() for a in mesh.directory.list_all()], indent=2)

    @mcp.resource("trustmesh://missions/active")
    def active_missions_resource() -> str:
        """Open and in-progress missions."""
        return json.dumps([m.to_dict() for m in mesh.missions.list_active()], indent=2)

    @mcp.resource("trustmesh://leaderboard")
    def leaderboard_resource() -> str:
        """Top agents by reputation score."""
        return json.dumps([r.to_dict() for r in mesh.ledger.get_leaderboard(10)], indent=2)

    return mcp


def run_mcp_server(transport: str = "stdio", port: int = 8091, mesh: Optional[TrustMesh] = None):
    """
    Run the TrustMesh MCP server.

    Args:
        transport: Transport type ("stdio" or "http")
        port: Port for HTTP transport
        mesh: Services to expose
    """
    mesh = mesh or TrustMesh.from_env()
    configure_logging(mesh.settings.log_level)
    mcp = create_mcp_server(mesh)

    if transport == "stdio":
        mcp.run(transport="stdio")
    elif transport in ("http", "streamable-http"):
        mcp.settings.port = port
        mcp.run(transport="streamable-http")
    else:
        raise ValueError(f"Unknown transport: {transport}")
