"""SafeSQL command line and MCP server."""
