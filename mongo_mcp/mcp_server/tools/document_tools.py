"""MongoDB document tools: query, insert, update, delete, aggregate, list, count.

Each tool performs exactly one store operation and returns plain text:

- If the connection is not ready the text is ``Database not connected`` and
  the store is never touched.
- Any failure (malformed JSON, wrong argument shape, driver error) is caught
  and returned as ``Error <doing X>: <message>``. Nothing propagates to the
  transport.

Filters, updates and pipelines are forwarded to MongoDB verbatim after JSON
parsing, so every query and update operator is reachable.
"""

import functools
import itertools
import logging
from typing import Any, Awaitable, Callable

from mongo_mcp.mcp_server.database.connection import ConnectionManager
from mongo_mcp.mcp_server.exceptions import DatabaseNotConnectedError, convert_to_mcp_exception

from .serialization import parse_document, parse_pipeline, serialize_mongodb_result

logger = logging.getLogger(__name__)

NOT_CONNECTED_MESSAGE = "Database not connected"


def tool_operation(action: str) -> Callable[[Callable[..., Awaitable[str]]], Callable[..., Awaitable[str]]]:
    """Wrap a tool coroutine with the readiness check and error rendering.

    Args:
        action: Gerund phrase used in error text, e.g. "inserting document"
    """

    def decorator(func: Callable[..., Awaitable[str]]) -> Callable[..., Awaitable[str]]:
        @functools.wraps(func)
        async def wrapper(self: "DocumentTools", *args: Any, **kwargs: Any) -> str:
            if not self.manager.is_ready():
                logger.debug(f"{func.__name__} called while database not connected")
                return NOT_CONNECTED_MESSAGE

            try:
                return await func(self, *args, **kwargs)
            except DatabaseNotConnectedError:
                return NOT_CONNECTED_MESSAGE
            except Exception as e:
                error = convert_to_mcp_exception(e, context={"tool": func.__name__})
                logger.warning(f"{func.__name__} failed [{error.error_code}]: {e}")
                return f"Error {action}: {e}"

        return wrapper

    return decorator


class DocumentTools:
    """Async handlers behind the registered MCP tools.

    Args:
        manager: The process's connection manager; readiness is checked on
            every call
    """

    def __init__(self, manager: ConnectionManager) -> None:
        self.manager = manager
        self.settings = manager.settings

    def _cap(self, limit: int) -> int:
        cap = self.settings.max_result_documents
        if cap is None:
            return limit
        # pymongo treats 0 as "no limit"
        if limit == 0 or abs(limit) > cap:
            return cap
        return limit

    @tool_operation("executing MongoDB query")
    async def query(self, collection: str, query: str, limit: float | None = None) -> str:
        """Find documents matching a JSON filter, at most ``limit`` of them.

        Fractional limits are truncated toward zero.
        """
        filter_doc = parse_document(query, "query")
        if limit is None:
            limit = self.settings.default_query_limit
        limit = self._cap(int(limit))

        coll = self.manager.get_database()[collection]
        documents = await self.manager.run(lambda: list(coll.find(filter_doc).limit(limit)))

        logger.debug(f"query on {collection} returned {len(documents)} document(s)")
        return serialize_mongodb_result(documents)

    @tool_operation("inserting document")
    async def insert(self, collection: str, document: str | dict[str, Any]) -> str:
        doc = parse_document(document, "document")

        coll = self.manager.get_database()[collection]
        result = await self.manager.run(coll.insert_one, doc)

        logger.info(f"Inserted document {result.inserted_id} into {collection}")
        return f"Document inserted with ID: {result.inserted_id}"

    @tool_operation("updating documents")
    async def update(self, collection: str, filter: str, update: str) -> str:
        filter_doc = parse_document(filter, "filter")
        update_doc = parse_document(update, "update")

        coll = self.manager.get_database()[collection]
        result = await self.manager.run(coll.update_many, filter_doc, update_doc)

        logger.info(
            f"update on {collection}: matched {result.matched_count}, "
            f"modified {result.modified_count}"
        )
        return f"Matched {result.matched_count}, modified {result.modified_count} document(s)"

    @tool_operation("deleting documents")
    async def delete(self, collection: str, filter: str) -> str:
        filter_doc = parse_document(filter, "filter")

        coll = self.manager.get_database()[collection]
        result = await self.manager.run(coll.delete_many, filter_doc)

        logger.info(f"delete on {collection}: removed {result.deleted_count}")
        return f"Deleted {result.deleted_count} document(s)"

    @tool_operation("running aggregation")
    async def aggregate(self, collection: str, pipeline: str) -> str:
        """Run a pipeline and materialize its results (capped if configured)."""
        stages = parse_pipeline(pipeline)
        cap = self.settings.max_result_documents

        coll = self.manager.get_database()[collection]

        def run_pipeline() -> list[dict[str, Any]]:
            with coll.aggregate(stages) as cursor:
                if cap is None:
                    return list(cursor)
                return list(itertools.islice(cursor, cap))

        results = await self.manager.run(run_pipeline)

        logger.debug(f"aggregate on {collection} returned {len(results)} document(s)")
        return serialize_mongodb_result(results)

    @tool_operation("listing collections")
    async def list_collections(self) -> str:
        db = self.manager.get_database()
        names = await self.manager.run(db.list_collection_names)
        return serialize_mongodb_result(sorted(names))

    @tool_operation("counting documents")
    async def count(self, collection: str, filter: str = "{}") -> str:
        filter_doc = parse_document(filter, "filter")

        coll = self.manager.get_database()[collection]
        total = await self.manager.run(coll.count_documents, filter_doc)

        return f"Count: {total}"
