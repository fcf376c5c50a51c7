"""
Run TrustMesh MCP Server as a module.

Usage:
    python -m trustmesh.mcp                          # Stdio transport
    python -m trustmesh.mcp --transport http         # HTTP transport on port 8091
"""

from .server import run_mcp_server

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        description="TrustMesh MCP Server - reputation and missions for AI agents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Start with stdio transport (for Claude Desktop, Cursor, etc.)
    python -m trustmesh.mcp

    # Start with HTTP transport
    python -m trustmesh.mcp --transport http --port 8091

    # Persist state somewhere specific
    TRUSTMESH_DB_PATH=/tmp/mesh.db python -m trustmesh.mcp
"""
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport type (default: stdio for CLI integration)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8091,
        help="Port for HTTP transport (default: 8091)"
    )

    args = parser.parse_args()

    run_mcp_server(transport=args.transport, port=args.port)
