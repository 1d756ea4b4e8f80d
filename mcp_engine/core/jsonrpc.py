from enum import IntEnum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

JSONRPC_VERSION = "2.0"

RequestId = Union[str, int]


class ErrorCode(IntEnum):
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    # Protocol specific
    RESOURCE_NOT_FOUND = -32002


class JsonRpcRequest(BaseModel):
    jsonrpc: str = Field(JSONRPC_VERSION, pattern=r"^2\.0$")
    method: str
    params: Optional[Dict[str, Any]] = None
    id: Optional[RequestId] = None

    @property
    def is_notification(self) -> bool:
        return self.id is None

    def param(self, key: str, default: Any = None) -> Any:
        if not self.params:
            return default
        return self.params.get(key, default)


class JsonRpcError(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        error = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class JsonRpcResponse(BaseModel):
    jsonrpc: str = Field(JSONRPC_VERSION, pattern=r"^2\.0$")
    id: Optional[RequestId] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[JsonRpcError] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        """Wire form: exactly one of ``result``/``error`` is emitted."""
        message: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            message["error"] = self.error.to_dict()
        else:
            message["result"] = self.result if self.result is not None else {}
        return message


def success_response(request_id: Optional[RequestId], result: Optional[Dict[str, Any]] = None) -> JsonRpcResponse:
    return JsonRpcResponse(id=request_id, result=result or {})


def error_response(
    request_id: Optional[RequestId],
    code: int,
    message: str,
    data: Any = None,
) -> JsonRpcResponse:
    return JsonRpcResponse(id=request_id, error=JsonRpcError(code=code, message=message, data=data))


class JsonRpcException(Exception):
    """Protocol error raised by method handlers, rendered 1:1 as an error envelope."""

    def __init__(
        self,
        message: str,
        code: int,
        request_id: Optional[RequestId] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.request_id = request_id
        self.data = data

    def to_error(self) -> JsonRpcError:
        return JsonRpcError(code=self.code, message=self.message, data=self.data)

    def to_response(self) -> JsonRpcResponse:
        return JsonRpcResponse(id=self.request_id, error=self.to_error())
