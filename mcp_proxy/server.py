#!/usr/bin/env python3
"""
MCP Proxy Server Entrypoint

HTTP API that exposes every tool of the configured MCP servers.
Tools are discovered at startup via registry.discover_backends().
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .backends import build_backends
from .base import BackendCapability, MissingToolName
from .config import ProxySettings, load_backend_settings
from .exporter import API_KEY_HEADER, export_all
from .params import resolve_body_arguments, resolve_query_arguments
from .registry import ToolRegistry, discover_backends
from .router import InvocationResult, InvocationRouter

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

SELECTOR_PARAM = "tool"
API_KEY_PARAM = "api_key"


def require_api_key(request: Request) -> None:
    """Accept the key from the x-api-key header or the api_key query parameter."""
    provided = request.headers.get(API_KEY_HEADER) or request.query_params.get(API_KEY_PARAM)
    if not provided or provided != request.app.state.settings.api_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


def _registry(request: Request) -> ToolRegistry:
    return request.app.state.registry


def _invocation_response(outcome: InvocationResult) -> JSONResponse:
    status_code = 200 if outcome.success else 500
    return JSONResponse(status_code=status_code, content=outcome.to_dict())


def create_app(
    settings: Optional[ProxySettings] = None,
    backends: Optional[Dict[str, BackendCapability]] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    `backends` overrides the ones built from the settings document.
    """
    settings = settings or ProxySettings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        logging.getLogger().setLevel(settings.log_level)
        logger.info("Starting MCP proxy server...")

        active = backends
        if active is None:
            active = build_backends(load_backend_settings(settings.settings_path))

        registry = await discover_backends(active)
        registry.log_summary()
        app.state.registry = registry
        app.state.router = InvocationRouter(registry)

        logger.info(f"Connected MCP servers: {len(registry.backend_names())}")
        logger.info(f"Available tools: {len(registry)}")
        if settings.uses_default_api_key:
            logger.warning("Using default API key - please change this in production!")

        yield

        for name, backend in active.items():
            try:
                await backend.close()
            except Exception as e:
                logger.warning(f"Failed to close MCP server {name}: {e}")
        logger.info("MCP proxy server shutting down")

    app = FastAPI(
        title="MCP REST Proxy",
        description="Bridge MCP servers to REST APIs",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = ToolRegistry()
    app.state.router = InvocationRouter(app.state.registry)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(MissingToolName)
    async def missing_tool_handler(request: Request, exc: MissingToolName):
        return JSONResponse(status_code=400, content={"error": exc.message})

    # ============== API Endpoints ==============

    @app.get("/health")
    async def health(request: Request):
        registry = _registry(request)
        return {
            "status": "ok",
            "connectedBackends": registry.backend_names(),
            "availableTools": registry.tool_names(),
        }

    @app.get("/tools", dependencies=[Depends(require_api_key)])
    async def list_tools(request: Request):
        return {
            "tools": [
                {
                    "name": entry.tool_name,
                    "backend": entry.backend_name,
                    "description": entry.descriptor.description,
                    "inputSchema": entry.descriptor.input_schema,
                }
                for entry in _registry(request).list_all()
            ]
        }

    @app.get("/serialize-tools", dependencies=[Depends(require_api_key)])
    async def serialize_tools(request: Request):
        return export_all(_registry(request), str(request.base_url))

    @app.get("/tool", dependencies=[Depends(require_api_key)])
    async def invoke_tool_get(request: Request):
        extra = {
            key: value
            for key, value in request.query_params.items()
            if key not in (SELECTOR_PARAM, API_KEY_PARAM)
        }
        tool_name, arguments = resolve_query_arguments(
            request.query_params.get(SELECTOR_PARAM), extra
        )
        outcome = await request.app.state.router.invoke(tool_name, arguments)
        return _invocation_response(outcome)

    @app.post("/tool", dependencies=[Depends(require_api_key)])
    async def invoke_tool_post(request: Request):
        selector = request.query_params.get(SELECTOR_PARAM)
        body = await _read_json_object(request)
        tool_name, arguments = resolve_body_arguments(selector, body)
        outcome = await request.app.state.router.invoke(tool_name, arguments)
        return _invocation_response(outcome)

    return app


def _is_json_request(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


async def _read_json_object(request: Request) -> Dict[str, Any]:
    """JSON object body; non-JSON content types are ignored and read as {}."""
    if not _is_json_request(request):
        return {}
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


app = create_app()


def main() -> None:
    settings = app.state.settings
    logger.info(f"Server URL: http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
