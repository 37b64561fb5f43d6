"""
Input validation and sanitization for form submissions.
Rules are driven by the configured FormSchema; the first failing rule wins.
"""
import re
from typing import Any, Dict, Optional

from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from app.errors import ValidationFailed
from app.models.forms import FieldSpec, FormSchema

MAX_SANITIZED_LENGTH = 1000
MAX_OPTIONAL_LENGTH = 1000
MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15

_ANGLE_BRACKETS = re.compile(r"[<>]")
_JAVASCRIPT_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)
_PHONE_SEPARATORS = re.compile(r"[\s\-()]")


def sanitize(value: Any, max_length: Optional[int] = MAX_SANITIZED_LENGTH) -> str:
    """
    Strip markup-ish content from user text before it is stored.

    Not an HTML sanitizer: removes angle brackets, ``javascript:`` prefixes
    and inline ``on*=`` handlers, then truncates.

    Args:
        value: Raw field value (non-strings sanitize to "")
        max_length: Truncation length, None to keep the whole string

    Returns:
        Sanitized text
    """
    if not value or not isinstance(value, str):
        return ""

    text = value.strip()
    text = _ANGLE_BRACKETS.sub("", text)

    # Removing one pattern can splice another back together ("javajavascript:script:")
    while True:
        text, schemes = _JAVASCRIPT_SCHEME.subn("", text)
        text, handlers = _EVENT_HANDLER.subn("", text)
        if not schemes and not handlers:
            break

    if max_length is not None:
        text = text[:max_length]
    return text


def normalize_phone(phone: str) -> str:
    """Drop whitespace, dashes and parentheses from a phone number"""
    return _PHONE_SEPARATORS.sub("", phone)


def is_valid_phone(phone: str) -> bool:
    digits = normalize_phone(phone)
    return digits.isascii() and digits.isdigit() and MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _validate_field(spec: FieldSpec, value: Any) -> None:
    if not spec.required:
        if value is None or value == "":
            return
        if not isinstance(value, str):
            raise ValidationFailed(f"{spec.label} must be text")
        if len(value) > MAX_OPTIONAL_LENGTH:
            raise ValidationFailed(f"{spec.label} must be less than {MAX_OPTIONAL_LENGTH} characters")
        return

    if _is_blank(value):
        raise ValidationFailed(f"{spec.label} is required")

    if len(value) > spec.max_length:
        raise ValidationFailed(f"{spec.label} must be less than {spec.max_length} characters")

    if spec.kind == "phone" and not is_valid_phone(value):
        raise ValidationFailed(f"{spec.label} must contain {MIN_PHONE_DIGITS}-{MAX_PHONE_DIGITS} digits")

    if spec.kind == "email":
        try:
            validate_email(value.strip())
        except PydanticCustomError:
            raise ValidationFailed(f"{spec.label} must be a valid email address") from None


def validate_submission(body: Any, schema: FormSchema) -> None:
    """
    Validate a decoded request body against a form schema

    Raises:
        ValidationFailed: On the first rule that does not hold
    """
    if body is None or body == "":
        raise ValidationFailed("Request body is required")

    if not isinstance(body, dict):
        raise ValidationFailed("Request body must be a JSON object")

    for spec in schema.fields:
        _validate_field(spec, body.get(spec.name))

    token = body.get(schema.token_field)
    if _is_blank(token):
        raise ValidationFailed("reCAPTCHA token is required")


def sanitize_submission(body: Dict[str, Any], schema: FormSchema) -> Dict[str, str]:
    """Sanitize every schema field independently; the token is never truncated"""
    cleaned = {name: sanitize(body.get(name)) for name in schema.field_names}
    cleaned[schema.token_field] = sanitize(body.get(schema.token_field), max_length=None)
    return cleaned
