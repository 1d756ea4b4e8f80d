from typing import Any, Dict, List, Optional, Protocol, Type

from pydantic import BaseModel, ValidationError

from mcp_engine.core.jsonrpc import ErrorCode, JsonRpcException, RequestId


class FieldError(BaseModel):
    field: str
    message: str


class ArgumentsInvalid(Exception):
    """Raised when handler arguments fail validation.

    Tool calls render every field error as its own error content; all other
    request kinds turn it into a single ``INVALID_PARAMS`` protocol error.
    """

    def __init__(self, errors: List[FieldError]):
        self.errors = errors
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return ", ".join(error.message for error in self.errors)

    def to_exception(self, request_id: Optional[RequestId] = None) -> JsonRpcException:
        return JsonRpcException(
            self.message,
            ErrorCode.INVALID_PARAMS,
            request_id,
            {"errors": [error.model_dump() for error in self.errors]},
        )


class Validator(Protocol):
    def validate(self, data: Dict[str, Any]) -> Any:
        ...


def _field_name(loc) -> str:
    return ".".join(str(part) for part in loc) or "arguments"


class ModelValidator:
    """Validates argument dicts against a pydantic model."""

    def __init__(self, model: Type[BaseModel]):
        self.model = model

    def validate(self, data: Dict[str, Any]) -> BaseModel:
        try:
            return self.model.model_validate(data)
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = _field_name(error["loc"])
                errors.append(FieldError(field=field, message=f"{field}: {error['msg']}"))
            raise ArgumentsInvalid(errors) from e
