from datetime import datetime
import math
from typing import Any, Dict, List

REQUIRED_FIELDS = ["entity_id", "signal_type", "detected_at"]
OPTIONAL_NUMERIC_FIELDS = ["signal_weight", "confidence"]


class SignalValidationError(ValueError):
    """Raised when a signal payload fails validation."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def parse_timestamp(value: Any) -> datetime:
    """Accept a datetime or an ISO-8601 string; aware values become naive local time."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        raise ValueError(f"Unsupported timestamp: {value!r}")
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


def validate_signal(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    errors: List[str] = []

    for f in REQUIRED_FIELDS:
        if f not in data or data[f] is None:
            errors.append(f"Missing required field: {f}")

    if "entity_id" in data and data["entity_id"] is not None:
        if isinstance(data["entity_id"], bool) or not isinstance(data["entity_id"], int):
            errors.append("Field 'entity_id' must be an integer")

    if "signal_type" in data and data["signal_type"] is not None:
        if not _is_non_empty_str(data["signal_type"]):
            errors.append("Field 'signal_type' must be a non-empty string")

    if data.get("detected_at") is not None:
        try:
            parse_timestamp(data["detected_at"])
        except ValueError:
            errors.append("Field 'detected_at' must be an ISO-8601 timestamp")

    for f in OPTIONAL_NUMERIC_FIELDS:
        if f in data and data[f] is not None and not _is_number(data[f]):
            errors.append(f"Field '{f}' must be a number if provided")

    if _is_number(data.get("confidence")) and not 0.0 <= data["confidence"] <= 1.0:
        errors.append("Field 'confidence' must be between 0 and 1")

    if _is_number(data.get("signal_weight")) and data["signal_weight"] < 0:
        errors.append("Field 'signal_weight' must not be negative")

    if "title" in data and data["title"] is not None and not isinstance(data["title"], str):
        errors.append("Field 'title' must be a string if provided")

    return errors
