"""JSON-RPC 2.0 tool-calling endpoint."""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from ...errors import LaneAnalyticsError
from ...services.lanes import LaneAnalyticsService
from ..dependencies import get_lane_service
from ..tools import TOOLS_BY_NAME, list_tools, server_info

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rpc"])

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


class RpcError(Exception):
    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


def _error(request_id: Any, code: int, message: str, data: Any = None) -> dict:
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": request_id, "error": error}


def _tool_result(payload: Any, *, is_error: bool = False) -> dict:
    text = payload if isinstance(payload, str) else json.dumps(payload, indent=2)
    result: dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if is_error:
        result["isError"] = True
    return result


def call_tool(service: LaneAnalyticsService, params: Any) -> dict:
    if not isinstance(params, dict):
        raise RpcError(INVALID_PARAMS, "tools/call requires an object with 'name' and 'arguments'")
    name = params.get("name")
    tool = TOOLS_BY_NAME.get(name) if isinstance(name, str) else None
    if tool is None:
        raise RpcError(INVALID_PARAMS, f"Unknown tool: {name}")
    arguments = params.get("arguments") or {}
    if not isinstance(arguments, dict):
        raise RpcError(INVALID_PARAMS, f"Arguments for {name} must be an object")

    logger.info(f"Dispatching tool {name} with arguments {arguments}")
    try:
        return _tool_result(tool.call(service, arguments))
    except ValidationError as exc:
        raise RpcError(
            INVALID_PARAMS,
            f"Invalid arguments for {name}",
            json.loads(exc.json(include_url=False)),
        ) from exc
    except LaneAnalyticsError as exc:
        logger.info(f"Tool {name} failed: {exc.message}")
        return _tool_result(f"Error: {exc.message}", is_error=True)


def dispatch(service: LaneAnalyticsService, message: Any) -> dict | None:
    """Handle one JSON-RPC message; returns ``None`` for notifications."""
    if not isinstance(message, dict) or message.get("jsonrpc") != "2.0" or not isinstance(message.get("method"), str):
        return _error(message.get("id") if isinstance(message, dict) else None, INVALID_REQUEST, "Invalid Request")

    request_id = message.get("id")
    method = message["method"]
    is_notification = "id" not in message

    try:
        match method:
            case "initialize":
                result = server_info()
            case "tools/list":
                result = list_tools()
            case "tools/call":
                result = call_tool(service, message.get("params"))
            case "notifications/initialized":
                return None
            case _:
                raise RpcError(METHOD_NOT_FOUND, f"Method not found: {method}")
    except RpcError as exc:
        if is_notification:
            return None
        return _error(request_id, exc.code, exc.message, exc.data)

    if is_notification:
        return None
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _dispatch_batch(service: LaneAnalyticsService, messages: list) -> list[dict]:
    return [reply for reply in (dispatch(service, item) for item in messages) if reply is not None]


@router.post("/rpc")
async def rpc_endpoint(
    request: Request,
    service: LaneAnalyticsService = Depends(get_lane_service),
) -> Response:
    body = await request.body()
    try:
        message = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _json_response(_error(None, PARSE_ERROR, "Parse error"))

    if isinstance(message, list):
        if not message:
            return _json_response(_error(None, INVALID_REQUEST, "Invalid Request"))
        replies = await run_in_threadpool(_dispatch_batch, service, message)
        if not replies:
            return Response(status_code=status.HTTP_202_ACCEPTED)
        return _json_response(replies)

    reply = await run_in_threadpool(dispatch, service, message)
    if reply is None:
        return Response(status_code=status.HTTP_202_ACCEPTED)
    return _json_response(reply)


def _json_response(payload: Any) -> Response:
    return Response(content=json.dumps(payload), media_type="application/json")
