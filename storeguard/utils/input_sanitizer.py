"""Recursive payload sanitization on top of the attack pattern detectors.

``sanitize`` walks a decoded request payload (scalars, sequences, mappings)
and either rejects it as soon as one string leaf looks malicious, or returns
a cleaned copy where every string had a fixed set of characters stripped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from storeguard.core.errors import AppError, MaliciousInputError, ValidationAppError
from storeguard.utils.attack_patterns import classify_input

DEFAULT_MAX_DEPTH = 32

# Angle brackets, quotes, semicolons/backslashes and (){}[]|&$
_STRIP_PATTERN = re.compile(r"[<>'\";\\(){}\[\]|&$]")

_CATEGORY_LABELS = {
    "sql": "possible SQL injection",
    "xss": "possible script injection",
}


@dataclass(frozen=True)
class ValidationResult:
    """Non-raising outcome of ``validate``."""

    is_valid: bool
    error: str | None = None
    field: str | None = None


def strip_dangerous_characters(value: str) -> str:
    """Remove the stripped character set and surrounding whitespace."""
    return _STRIP_PATTERN.sub("", value).strip()


def _join_key(path: str | None, key: Any) -> str:
    return f"{path}.{key}" if path else str(key)


def _join_index(path: str | None, index: int) -> str:
    return f"{path}[{index}]" if path else f"[{index}]"


def _reject(value: str, path: str | None) -> None:
    verdict = classify_input(value)
    if not verdict.is_suspicious:
        return

    label = _CATEGORY_LABELS[verdict.category]
    message = (
        f"Field '{path}' contains malicious input ({label})"
        if path
        else f"Malicious input detected ({label})"
    )
    raise MaliciousInputError(
        code="malicious_input_detected",
        message=message,
        details={"field": path, "category": verdict.category},
        field=path,
        category=verdict.category,
    )


def _sanitize(value: Any, path: str | None, depth: int, max_depth: int) -> Any:
    if depth > max_depth:
        raise ValidationAppError(
            code="payload_too_deep",
            message=f"Payload nesting exceeds the maximum depth of {max_depth}",
            details={"field": path, "max_depth": max_depth},
        )

    if isinstance(value, str):
        _reject(value, path)
        return strip_dangerous_characters(value)

    if isinstance(value, Mapping):
        return {
            key: _sanitize(item, _join_key(path, key), depth + 1, max_depth)
            for key, item in value.items()
        }

    if isinstance(value, (list, tuple)):
        return type(value)(
            _sanitize(item, _join_index(path, index), depth + 1, max_depth)
            for index, item in enumerate(value)
        )

    return value


def sanitize(value: Any, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Any:
    """Return a cleaned copy of a payload or reject it.

    Strings are checked against both detectors and, if clean, stripped of
    ``< > ' " ; \\ ( ) { } [ ] | & $``. Mappings keep their keys, sequences
    keep their order and container type, and every other value (numbers,
    booleans, None) passes through unchanged.

    Args:
        value: Decoded payload (object tree).
        max_depth: Deepest nesting level accepted.

    Returns:
        Sanitized copy of the payload.

    Raises:
        MaliciousInputError: On the first suspicious string, naming its field
            path (e.g. ``items[1].name``).
        ValidationAppError: If the payload nests deeper than max_depth.
    """
    return _sanitize(value, None, 0, max_depth)


def validate(value: Any, *, max_depth: int = DEFAULT_MAX_DEPTH) -> ValidationResult:
    """Non-raising wrapper around ``sanitize``.

    Examples:
        >>> validate({"name": "Ana"})
        ValidationResult(is_valid=True, error=None, field=None)
        >>> validate({"note": "DROP TABLE users;"}).field
        'note'
    """
    try:
        sanitize(value, max_depth=max_depth)
    except MaliciousInputError as exc:
        return ValidationResult(is_valid=False, error=exc.message, field=exc.field)
    except AppError as exc:
        return ValidationResult(is_valid=False, error=exc.message)
    return ValidationResult(is_valid=True)


def scan_fields(items: Iterable[tuple[str, Any]]) -> None:
    """Apply detection (without stripping) to flat name/value pairs.

    Intended for query parameters, where values are inspected but not
    rewritten.

    Raises:
        MaliciousInputError: On the first suspicious value, naming its field.
    """
    for name, value in items:
        if isinstance(value, str):
            _reject(value, name)
