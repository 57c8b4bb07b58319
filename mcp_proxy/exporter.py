"""
Tool export for third-party HTTP integrations.

Projects the registry into one record per tool: callback URL, header and
body templates, inputs, and a single generic output. Computed fresh on each
call.
"""

import json
from typing import Any, Dict, List
from urllib.parse import quote

from .registry import RegistryEntry, ToolRegistry

API_KEY_HEADER = "x-api-key"
API_KEY_PLACEHOLDER = "{{API_KEY}}"

# Characters encodeURIComponent leaves untouched, besides alphanumerics and "-_."
_URL_SAFE = "!~*'()"


def generate_id(text: str) -> str:
    """
    Deterministic 32-bit string hash (h = h * 31 + c) as 12 hex digits.

    Not cryptographic and not collision resistant. Runs over UTF-16 code
    units so existing identifiers stay the same.
    """
    data = text.encode("utf-16-le", "surrogatepass")
    value = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        value = (value * 31 + unit) & 0xFFFFFFFF

    if value >= 0x80000000:
        value -= 0x100000000
    return format(abs(value), "x").zfill(12)


def _inputs_for(entry: RegistryEntry) -> List[Dict[str, str]]:
    return [
        {"name": param.name, "type": param.type or "string"}
        for param in entry.descriptor.parameters
    ]


def export_tool(entry: RegistryEntry, base_url: str) -> Dict[str, Any]:
    """Build the export record for one registry entry."""
    tool_name = entry.tool_name
    description = entry.descriptor.description
    inputs = _inputs_for(entry)

    if inputs:
        placeholders = {item["name"]: f"{{{{{item['name']}}}}}" for item in inputs}
        request_body = json.dumps(placeholders, separators=(",", ":"), ensure_ascii=False)
        method = "POST"
    else:
        request_body = ""
        method = "GET"

    return {
        "name": description or tool_name,
        "description": description or f"Execute {tool_name} tool from {entry.backend_name} MCP server",
        "url": f"{base_url.rstrip('/')}/tool?tool={quote(tool_name, safe=_URL_SAFE)}",
        "headers": [
            {"name": API_KEY_HEADER, "value": API_KEY_PLACEHOLDER},
        ],
        "inputs": inputs,
        "outputs": [
            {"name": "Result", "key": "result", "id": generate_id(tool_name + "_result")},
        ],
        "request_body": request_body,
        "content_type": "json",
        "method": method,
    }


def export_all(registry: ToolRegistry, base_url: str) -> Dict[str, Dict[str, Any]]:
    """Export every registered tool, keyed by tool name."""
    return {
        entry.tool_name: export_tool(entry, base_url)
        for entry in registry.list_all()
    }
