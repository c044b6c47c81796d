"""Request validation: raw payloads in, normalized schema objects out."""

import logging
import re
from typing import Any, Dict, Iterable, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import NotFound, ValidationError
from .schemas import MAX_ID, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_DIGITS_RE = re.compile(r"^[0-9]+$")


class IdOutOfRange(ValueError):
    """A well-formed identifier too large to be stored."""


def format_errors(errors: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Reduce pydantic error dicts to JSON-safe ``{field, message, type}``."""
    details = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ())]
        details.append(
            {
                "field": ".".join(location) or "body",
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "value_error"),
            }
        )
    return details


def validate_payload(model: Type[ModelT], raw: Any) -> ModelT:
    """Validate a decoded JSON body against ``model``.

    Raises:
        ValidationError: with one entry per violated field
    """
    if not isinstance(raw, dict):
        raise ValidationError(
            [{"field": "body", "message": "Request body must be a JSON object", "type": "dict_type"}]
        )

    try:
        return model.model_validate(raw)
    except PydanticValidationError as e:
        details = format_errors(e.errors())
        logger.debug(f"{model.__name__} rejected: {details}")
        raise ValidationError(details) from e


def validate_task_create(raw: Any) -> TaskCreate:
    return validate_payload(TaskCreate, raw)


def validate_task_update(raw: Any) -> TaskUpdate:
    return validate_payload(TaskUpdate, raw)


def parse_positive_int(value: Any) -> int:
    """Parse a decimal string (or int) into a positive integer.

    Raises:
        IdOutOfRange: if the value is well formed but larger than ``MAX_ID``
        ValueError: if the value is not a positive decimal integer
    """
    if isinstance(value, bool):
        raise ValueError("must be a positive integer")
    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        if not _DIGITS_RE.match(text):
            raise ValueError("must be a positive integer")
        if len(text.lstrip("0")) > len(str(MAX_ID)):
            raise IdOutOfRange(f"must not exceed {MAX_ID}")
        number = int(text)
    if number <= 0:
        raise ValueError("must be a positive integer")
    if number > MAX_ID:
        raise IdOutOfRange(f"must not exceed {MAX_ID}")
    return number


def parse_resource_id(
    value: Any,
    message: str = "Invalid task ID",
    not_found: str = "Task not found",
) -> int:
    """Parse a path identifier.

    Raises:
        ValidationError: 400 if the identifier is malformed
        NotFound: 404 if it is too large for any stored row to carry
    """
    try:
        return parse_positive_int(value)
    except IdOutOfRange as e:
        raise NotFound(not_found) from e
    except ValueError as e:
        raise ValidationError(
            [{"field": "id", "message": str(e), "type": "int_parsing"}],
            message=message,
        ) from e
