"""MCP server: connection lifecycle, tools and serving loop."""
