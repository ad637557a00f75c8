"""MongoDB MCP Server using FastMCP.

Registers the document tools on a FastMCP server. Every tool returns a single
text block; success and failure are distinguished only by the text.

Architecture:
    - Read tools: query, aggregate, list_collections, count
    - Write tools: insert, update, delete

Usage:
    >>> manager = ConnectionManager(settings)
    >>> manager.connect()
    >>> server = create_server(manager)
    >>> await server.run_async(transport="stdio")
"""

import logging
from typing import Annotated, Any

from fastmcp import FastMCP
from pydantic import Field

from .database.connection import ConnectionManager
from .tool_prompts import get_system_instructions, get_tool_prompt
from .tools.document_tools import DocumentTools

logger = logging.getLogger(__name__)

CollectionName = Annotated[str, Field(description="Name of the MongoDB collection")]


def create_server(manager: ConnectionManager) -> FastMCP:
    """Create the FastMCP server and register all MongoDB tools.

    Args:
        manager: Connection manager shared by every tool handler

    Returns:
        Configured FastMCP server instance
    """
    settings = manager.settings
    server = FastMCP(
        name=settings.server_name,
        instructions=get_system_instructions(),
        version=settings.server_version,
    )
    tools = DocumentTools(manager)

    # =========================================================================
    # READ TOOLS
    # =========================================================================

    @server.tool(
        name="query",
        description=get_tool_prompt("query"),
        annotations={"readOnlyHint": True},
    )
    async def query(
        collection: CollectionName,
        query: Annotated[str, Field(description="JSON filter document, e.g. {\"status\": \"open\"}")],
        limit: Annotated[float, Field(description="Maximum number of documents to return")] = (
            settings.default_query_limit
        ),
    ) -> str:
        return await tools.query(collection, query, limit)

    @server.tool(
        name="aggregate",
        description=get_tool_prompt("aggregate"),
        annotations={"readOnlyHint": True},
    )
    async def aggregate(
        collection: CollectionName,
        pipeline: Annotated[str, Field(description="JSON array of aggregation stage documents")],
    ) -> str:
        return await tools.aggregate(collection, pipeline)

    @server.tool(
        name="list_collections",
        description=get_tool_prompt("list_collections"),
        annotations={"readOnlyHint": True},
    )
    async def list_collections() -> str:
        return await tools.list_collections()

    @server.tool(
        name="count",
        description=get_tool_prompt("count"),
        annotations={"readOnlyHint": True},
    )
    async def count(
        collection: CollectionName,
        filter: Annotated[str, Field(description="JSON filter document")] = "{}",
    ) -> str:
        return await tools.count(collection, filter)

    # =========================================================================
    # WRITE TOOLS
    # =========================================================================

    @server.tool(
        name="insert",
        description=get_tool_prompt("insert"),
        annotations={"readOnlyHint": False, "destructiveHint": False},
    )
    async def insert(
        collection: CollectionName,
        document: Annotated[
            str | dict[str, Any],
            Field(description="Document to insert, as a JSON string or an object"),
        ],
    ) -> str:
        return await tools.insert(collection, document)

    @server.tool(
        name="update",
        description=get_tool_prompt("update"),
        annotations={"readOnlyHint": False, "destructiveHint": True},
    )
    async def update(
        collection: CollectionName,
        filter: Annotated[str, Field(description="JSON filter selecting the documents to update")],
        update: Annotated[str, Field(description="JSON update operators, e.g. {\"$set\": {...}}")],
    ) -> str:
        return await tools.update(collection, filter, update)

    @server.tool(
        name="delete",
        description=get_tool_prompt("delete"),
        annotations={"readOnlyHint": False, "destructiveHint": True},
    )
    async def delete(
        collection: CollectionName,
        filter: Annotated[str, Field(description="JSON filter selecting the documents to delete")],
    ) -> str:
        return await tools.delete(collection, filter)

    logger.debug(f"Registered MongoDB tools on server '{settings.server_name}'")
    return server
