"""Input validation utilities for Prism."""

import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any


class ValidationError(Exception):
    """Raised when local validation fails before any request is sent.

    The message is computed locally from the missing or invalid fields, so it
    never needs to go through the error resolver.
    """

    def __init__(self, message: str, missing_fields: Iterable[str] = ()):
        super().__init__(message)
        self.message = message
        self.missing_fields = list(missing_fields)


def require_fields(fields: Mapping[str, Any], context: str = "request") -> None:
    """Raise if any of the named fields is unset.

    Args:
        fields: Mapping of human-readable field name to value
        context: What the fields belong to, used in the error message

    Raises:
        ValidationError: Naming every field that is None or blank
    """
    missing = [name for name, value in fields.items() if is_blank(value)]
    if missing:
        raise ValidationError(
            f"Missing required {context} fields: {', '.join(missing)}",
            missing_fields=missing,
        )


def is_blank(value: Any) -> bool:
    """Check whether a form value counts as empty."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def validate_model_name(name: str) -> str:
    """Validate a model name.

    Args:
        name: The model name to validate

    Returns:
        Stripped model name

    Raises:
        ValidationError: If the model name is empty or too long
    """
    if not name or not name.strip():
        raise ValidationError("Model name cannot be empty", ["model name"])

    name = name.strip()
    if len(name) > 100:
        raise ValidationError(
            f"Invalid model name '{name}': must be 100 characters or less"
        )
    return name


def validate_csv_path(path: str | Path, must_exist: bool = True) -> Path:
    """Validate a dataset file path for upload.

    Args:
        path: The file path to validate
        must_exist: Whether the file must exist

    Returns:
        Resolved Path object

    Raises:
        ValidationError: If the path is empty, not a CSV file, or missing
    """
    if not path:
        raise ValidationError("Please select a file", ["file"])

    path_obj = Path(path)
    if path_obj.suffix.lower() != ".csv":
        raise ValidationError("Please select a CSV file")

    if must_exist and not path_obj.is_file():
        raise ValidationError(f"File not found: {path}")

    return path_obj.resolve()


def validate_url(url: str) -> str:
    """Validate a URL.

    Args:
        url: The URL to validate

    Returns:
        Validated URL without trailing slash

    Raises:
        ValidationError: If the URL is invalid
    """
    if not url:
        raise ValidationError("URL cannot be empty")

    url = url.strip()

    if not url:
        raise ValidationError("URL cannot be only whitespace")

    if not (url.startswith("http://") or url.startswith("https://")):
        raise ValidationError(
            f"Invalid URL '{url}': must start with http:// or https://"
        )

    if not re.match(r"^https?://[^\s/$.?#].[^\s]*$", url, re.IGNORECASE):
        raise ValidationError(f"Invalid URL format: {url}")

    return url.rstrip("/")


def validate_timeout(value: Any, context: str = "timeout") -> float:
    """Validate a positive number of seconds.

    Raises:
        ValidationError: If the value is not a positive number
    """
    try:
        seconds = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {context}: {value!r} is not a number") from e

    if seconds <= 0:
        raise ValidationError(f"Invalid {context}: must be greater than zero")
    return seconds
