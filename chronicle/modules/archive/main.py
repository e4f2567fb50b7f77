"""Archive module - FastAPI service."""

from __future__ import annotations

import structlog
from fastapi import Depends, FastAPI

from modules.archive.manifest import MANIFEST
from modules.archive.tools import ArchiveTools
from shared.auth import require_service_auth
from shared.config import get_settings
from shared.schemas.common import HealthResponse
from shared.schemas.tools import ModuleManifest, ToolCall, ToolResult

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
)

logger = structlog.get_logger()
app = FastAPI(title="Archive Module", version="1.0.0")

tools: ArchiveTools | None = None

# Context the orchestrator injects into every call; only the channel is used.
_UNUSED_CONTEXT_KEYS = ("platform", "platform_thread_id", "platform_server_id", "conversation_id")


@app.on_event("startup")
async def startup():
    global tools
    tools = ArchiveTools(get_settings())
    await tools.namespaces.ensure_root()
    logger.info("archive_ready", root=str(tools.namespaces.root))


@app.get("/manifest", response_model=ModuleManifest)
async def manifest(_=Depends(require_service_auth)):
    """Return the module manifest."""
    return MANIFEST


@app.post("/execute", response_model=ToolResult)
async def execute(call: ToolCall, _=Depends(require_service_auth)):
    """Execute a tool call."""
    if tools is None:
        return ToolResult(tool_name=call.tool_name, success=False, error="Module not ready")

    try:
        tool_name = call.tool_name.split(".")[-1]
        args = dict(call.arguments)
        for k in _UNUSED_CONTEXT_KEYS:
            args.pop(k, None)

        if tool_name == "upload_images":
            result = await tools.upload_images(**args)
        elif tool_name == "save_image":
            result = await tools.save_image(**args)
        elif tool_name == "random_batch":
            result = await tools.random_batch(**args)
        elif tool_name == "show_batch":
            result = await tools.show_batch(**args)
        elif tool_name == "search_images":
            result = await tools.search_images(**args)
        elif tool_name == "random_images":
            result = await tools.random_images(**args)
        elif tool_name == "list_images":
            result = await tools.list_images(**args)
        elif tool_name == "delete_image":
            result = await tools.delete_image(**args)
        else:
            return ToolResult(
                tool_name=call.tool_name,
                success=False,
                error=f"Unknown tool: {call.tool_name}",
            )

        return ToolResult(tool_name=call.tool_name, success=True, result=result)
    except Exception as e:
        logger.error("tool_execution_error", tool=call.tool_name, error=str(e), exc_info=True)
        return ToolResult(tool_name=call.tool_name, success=False, error=str(e))


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok")
