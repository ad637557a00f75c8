"""MongoDB tools exposed through the MCP server."""

from .document_tools import NOT_CONNECTED_MESSAGE, DocumentTools, tool_operation
from .serialization import (
    parse_document,
    parse_json_argument,
    parse_pipeline,
    serialize_mongodb_result,
)

__all__ = [
    "NOT_CONNECTED_MESSAGE",
    "DocumentTools",
    "parse_document",
    "parse_json_argument",
    "parse_pipeline",
    "serialize_mongodb_result",
    "tool_operation",
]
