"""Centralized tool descriptions and server instructions.

Descriptions live here rather than in the registration code so they can be
reviewed and edited in one place. They are what MCP clients show to the model
when it decides which tool to call.
"""

SYSTEM_INSTRUCTIONS = (
    "Generic MongoDB access. Filters, updates and pipelines are passed as JSON "
    "strings and forwarded to MongoDB unchanged, so any query or update operator "
    "is allowed. Extended JSON such as {\"$oid\": \"...\"} can be used to match "
    "ObjectId values. Responses are plain text; a response starting with 'Error' "
    "means the operation failed."
)

TOOL_PROMPTS: dict[str, str] = {
    "query": (
        "Find documents in a MongoDB collection. `query` is a JSON filter document "
        "(use \"{}\" to match everything); at most `limit` documents are returned "
        "(default 10) as a JSON array."
    ),
    "insert": (
        "Insert one document into a MongoDB collection. `document` is a JSON object, "
        "given either as a JSON string or as a structured value. Returns the new _id."
    ),
    "update": (
        "Update every document matching `filter` with the update operators in `update` "
        "(for example {\"$set\": {\"status\": \"shipped\"}}). Both are JSON strings. "
        "Returns matched and modified counts."
    ),
    "delete": (
        "Delete every document matching `filter` (a JSON string). "
        "Returns the number of deleted documents."
    ),
    "aggregate": (
        "Run an aggregation pipeline on a MongoDB collection. `pipeline` is a JSON "
        "array of stage documents. Returns all results as a JSON array."
    ),
    "list_collections": "List the names of all collections in the database as a JSON array.",
    "count": (
        "Count documents in a MongoDB collection matching `filter` "
        "(a JSON string, default \"{}\" for all documents)."
    ),
}


def get_tool_prompt(tool_name: str) -> str | None:
    """Description for ``tool_name``, or None if it has none."""
    return TOOL_PROMPTS.get(tool_name)


def get_system_instructions() -> str:
    return SYSTEM_INSTRUCTIONS
