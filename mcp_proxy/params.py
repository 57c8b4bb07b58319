"""
Parameter resolution for tool invocations.

A selector has the form ``<tool_name>[ key1=value1 key2=value2 ...]``.
Two channels merge the inline parameters with different precedence:

- query channel (GET): extra query parameters override inline ones
- body channel (POST): inline parameters override the JSON body
"""

from typing import Any, Dict, Mapping, Optional, Tuple

from .base import MissingToolName


def parse_tool_selector(selector: Optional[str]) -> Tuple[Optional[str], Dict[str, str]]:
    """
    Split a selector into the tool name and its inline parameters.

    Tokens without ``=``, or with an empty key, are ignored.
    """
    if not selector:
        return None, {}

    parts = selector.split(" ")
    tool_name = parts[0] or None
    params: Dict[str, str] = {}

    for part in parts[1:]:
        key, sep, value = part.partition("=")
        if sep and key:
            params[key] = value

    return tool_name, params


def _require_tool_name(selector: Optional[str]) -> Tuple[str, Dict[str, str]]:
    tool_name, params = parse_tool_selector(selector)
    if not tool_name:
        raise MissingToolName()
    return tool_name, params


def resolve_query_arguments(
    selector: Optional[str],
    extra: Optional[Mapping[str, Any]] = None,
) -> Tuple[str, Dict[str, Any]]:
    """Query channel: additional parameters win on key collision."""
    tool_name, inline = _require_tool_name(selector)
    return tool_name, {**inline, **(extra or {})}


def resolve_body_arguments(
    selector: Optional[str],
    body: Optional[Mapping[str, Any]] = None,
) -> Tuple[str, Dict[str, Any]]:
    """Body channel: selector parameters win on key collision."""
    tool_name, inline = _require_tool_name(selector)
    return tool_name, {**(body or {}), **inline}
