"""
Normalization of external book payloads into BookRecord values.
"""

from typing import Any, Dict, Optional

from pydantic import ValidationError

from utilities.logger import get_logger

from .errors import BookValidationError
from .models import BookPayload, BookRecord

logger = get_logger(__name__)

# Optional payload fields and the value each takes when absent or null
OPTIONAL_FIELD_DEFAULTS: Dict[str, Any] = {
    "publication_year": 0,
    "isbn": "",
    "acquisition_value": 0,
    "loan_status": "Available",
}


def _describe_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "body"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def normalize_book_payload(payload: Any) -> BookRecord:
    """
    Build a fully-populated BookRecord from a create/update payload.

    Args:
        payload: Mapping with camelCase or snake_case keys

    Returns:
        BookRecord with every optional field defaulted

    Raises:
        BookValidationError: If the payload is not an object, a required
            field is missing or empty, or a number cannot be parsed
    """
    if not isinstance(payload, dict):
        raise BookValidationError("Book data must be a JSON object")

    try:
        validated = BookPayload.model_validate(payload)
    except ValidationError as e:
        raise BookValidationError(f"Invalid book data: {_describe_errors(e)}") from e

    fields = validated.model_dump()
    for name, default in OPTIONAL_FIELD_DEFAULTS.items():
        if fields.get(name) is None:
            fields[name] = default

    record = BookRecord(**fields)

    if record.available_copies > record.total_copies:
        logger.warning(
            "Available copies exceed total copies",
            title=record.title,
            total_copies=record.total_copies,
            available_copies=record.available_copies
        )

    return record


def parse_book_id(raw: Any) -> Optional[int]:
    """
    Parse the identifying request parameter.

    Returns:
        The integer id, or None when the value is missing or not an integer
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return None
