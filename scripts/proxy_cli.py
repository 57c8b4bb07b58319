#!/usr/bin/env python3
"""
Command line access to a running MCP proxy.

Examples:
    python scripts/proxy_cli.py health
    python scripts/proxy_cli.py tools
    python scripts/proxy_cli.py serialize-tools
    python scripts/proxy_cli.py call read_file file_id=my_file_123

Environment:
    MCP_HOST     server host and port (default: localhost:3000)
    MCP_API_KEY  API key (default: CHANGE_ME)
"""

import argparse
import json
import os
import sys

from mcp_proxy.client import ProxyClient, ProxyClientError

DEFAULT_HOST = "localhost:3000"
DEFAULT_API_KEY = "CHANGE_ME"


def parse_params(raw_params):
    params = {}
    for item in raw_params:
        key, sep, value = item.partition("=")
        if not sep or not key:
            print(f"Warning: Ignoring parameter '{item}' (should be key=value format)", file=sys.stderr)
            continue
        params[key] = value
    return params


def main():
    parser = argparse.ArgumentParser(description="MCP proxy client")
    parser.add_argument("--host", default=os.getenv("MCP_HOST", DEFAULT_HOST),
                        help=f"Server host and port (default: {DEFAULT_HOST})")
    parser.add_argument("--api-key", default=os.getenv("MCP_API_KEY", DEFAULT_API_KEY),
                        help="API key for authentication")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("health", help="Check server health and status")
    sub.add_parser("tools", help="List all available tools")
    sub.add_parser("serialize-tools", help="Get tools in serialized JSON format")
    call = sub.add_parser("call", help="Execute a tool")
    call.add_argument("tool_name")
    call.add_argument("params", nargs="*", help="key=value pairs")

    args = parser.parse_args()
    client = ProxyClient(f"http://{args.host}", args.api_key)

    print(f"API Key: {args.api_key[:8]}...", file=sys.stderr)
    try:
        if args.command == "health":
            data = client.health()
        elif args.command == "tools":
            data = client.list_tools()
        elif args.command == "serialize-tools":
            data = client.serialize_tools()
        else:
            params = parse_params(args.params)
            print(f"Calling tool: {args.tool_name} with parameters: {params}", file=sys.stderr)
            data = client.call_tool(args.tool_name, params)
    except ProxyClientError as e:
        print(f"Error (HTTP {e.status_code}): {e.message}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(data, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
