"""Decoding of the JSON payloads carried by commands."""

import json

from protean.exceptions import ValidationError


def load_json(raw, field_name):
    """Decode a JSON command field; dicts and lists pass through untouched."""
    if not raw:
        return None
    if isinstance(raw, dict | list):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError({field_name: ["Invalid JSON payload"]}) from None
