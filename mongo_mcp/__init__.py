"""MongoDB tools exposed over the Model Context Protocol.

The server publishes a small set of document-store operations (query, insert,
update, delete, aggregate, list_collections, count) as MCP tools served over
a stdio transport.

Usage:
    $ MONGO_URL=mongodb://localhost:27017 DB_NAME=shop mongo-mcp
"""

__version__ = "1.0.0"
