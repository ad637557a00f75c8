"""JSON argument parsing and result serialization for MongoDB tools.

Arguments such as filters, updates and pipelines arrive as JSON text. They are
parsed with the standard (strict) JSON parser and forwarded as they are. The
one exception is an object that is exactly an Extended JSON type wrapper, like
``{"$oid": "..."}`` or ``{"$date": "..."}``: it is turned into the native BSON
value by ``bson.json_util.object_hook`` so it can be used in filters. Query
operators that share a key with legacy Extended JSON (``$regex``, ``$type``)
are never converted.

Results are serialized with ``bson.json_util.default`` so ObjectId, datetime,
Decimal128 and friends render as Extended JSON instead of failing.
"""

import json
import logging
from typing import Any

from bson import json_util

from mongo_mcp.mcp_server.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


def serialize_mongodb_result(data: Any) -> str:
    """Serialize MongoDB results to an indented JSON string.

    Raises:
        TypeError: If data contains values neither JSON nor BSON can encode

    Example:
        >>> print(serialize_mongodb_result([{"_id": ObjectId("65f0c0ffee0000000000beef")}]))
        [
          {
            "_id": {
              "$oid": "65f0c0ffee0000000000beef"
            }
          }
        ]
    """
    try:
        return json.dumps(data, default=json_util.default, indent=2)
    except TypeError as e:
        logger.error(f"Failed to serialize MongoDB result: {e}")
        raise


# Key sets of the canonical/relaxed Extended JSON v2 type wrappers
EXTENDED_JSON_WRAPPERS: frozenset[frozenset[str]] = frozenset(
    frozenset(keys)
    for keys in (
        ("$oid",),
        ("$date",),
        ("$numberInt",),
        ("$numberLong",),
        ("$numberDouble",),
        ("$numberDecimal",),
        ("$binary",),
        ("$uuid",),
        ("$timestamp",),
        ("$regularExpression",),
        ("$symbol",),
        ("$code",),
        ("$code", "$scope"),
        ("$dbPointer",),
        ("$minKey",),
        ("$maxKey",),
    )
)


def _extended_json_hook(obj: dict[str, Any]) -> Any:
    if frozenset(obj) in EXTENDED_JSON_WRAPPERS:
        return json_util.object_hook(obj)
    return obj


def parse_json_argument(value: str) -> Any:
    """Parse a JSON argument, restoring Extended JSON type wrappers to BSON types.

    Any other object, operators included, comes back exactly as written.

    Raises:
        json.JSONDecodeError: If the text is not valid JSON
    """
    return json.loads(value, object_hook=_extended_json_hook)


def _json_type_name(value: Any) -> str:
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def parse_document(value: str | dict[str, Any], argument: str) -> dict[str, Any]:
    """Parse ``value`` as a JSON object (filter, update or document).

    Already-structured values are accepted as they are.

    Raises:
        json.JSONDecodeError: If the text is not valid JSON
        InvalidArgumentError: If the JSON is valid but not an object
    """
    parsed = parse_json_argument(value) if isinstance(value, str) else value
    if not isinstance(parsed, dict):
        raise InvalidArgumentError(
            message=f"{argument} must be a JSON object, got {_json_type_name(parsed)}",
            details={"argument": argument, "received": _json_type_name(parsed)},
        )
    return parsed


def parse_pipeline(value: str, argument: str = "pipeline") -> list[dict[str, Any]]:
    """Parse ``value`` as a JSON array of stage objects.

    Raises:
        json.JSONDecodeError: If the text is not valid JSON
        InvalidArgumentError: If the JSON is not an array of objects
    """
    parsed = parse_json_argument(value)
    if not isinstance(parsed, list):
        raise InvalidArgumentError(
            message=f"{argument} must be a JSON array, got {_json_type_name(parsed)}",
            details={"argument": argument, "received": _json_type_name(parsed)},
        )
    for index, stage in enumerate(parsed):
        if not isinstance(stage, dict):
            raise InvalidArgumentError(
                message=f"{argument} stage {index} must be a JSON object, got {_json_type_name(stage)}",
                details={"argument": argument, "stage": index},
            )
    return parsed
