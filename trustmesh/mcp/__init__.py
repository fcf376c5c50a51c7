"""
TrustMesh MCP Server

Model Context Protocol server exposing agent discovery, missions and
reputation as callable tools.
"""

from .tools import TrustMeshTools
from .server import create_mcp_server, run_mcp_server

__all__ = ["TrustMeshTools", "create_mcp_server", "run_mcp_server"]
