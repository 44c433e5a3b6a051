# utils.py
"""
Utility functions for the onboarding application.
"""

import base64
import re
from typing import Any, Dict, Optional


def slugify(text: Optional[str]) -> str:
    """
    Convert text to a filename-friendly slug.

    Runs of anything other than lowercase letters and digits collapse into a
    single hyphen. Empty results fall back to ``doc``.

    Examples:
        "Handbook Ack" -> "handbook-ack"
        "it_security__policy" -> "it-security-policy"
        "" -> "doc"
    """
    text = str(text or '').strip().lower()
    text = re.sub(r'[^a-z0-9]+', '-', text)
    text = re.sub(r'^-+|-+$', '', text)
    return text or 'doc'


def to_display(key: Optional[str]) -> str:
    """
    Turn a key such as ``jane_doe`` or ``handbook-ack`` into ``Jane Doe`` /
    ``Handbook Ack``.
    """
    text = re.sub(r'[_-]+', ' ', str(key or ''))
    return ' '.join(word.capitalize() if word else word for word in text.split(' '))


def flatten_json(value: Any, prefix: str = '', out: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Flatten nested mappings into dotted keys with stringified leaves.

    Lists are leaves, not containers.

    Examples:
        {"address": {"city": "Austin"}} -> {"address.city": "Austin"}
    """
    if out is None:
        out = {}
    if not isinstance(value, dict):
        return out

    for key, item in value.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(item, dict):
            flatten_json(item, dotted, out)
        else:
            out[dotted] = _stringify(item)
    return out


def _stringify(value: Any) -> str:
    # Match the JSON spelling of scalars so template values read naturally
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, list):
        return ','.join(_stringify(v) for v in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def decode_base64(text: str) -> bytes:
    """
    Decode base64 the forgiving way providers emit it.

    Accepts URL-safe characters, missing padding and stray whitespace.
    Characters outside the alphabet are skipped and a dangling final
    character is dropped.

    Examples:
        "QUJD" -> b"ABC"
        "QUI" -> b"AB"
    """
    data = re.sub(r'[^A-Za-z0-9+/]', '', text.replace('-', '+').replace('_', '/'))
    if len(data) % 4 == 1:
        data = data[:-1]
    return base64.b64decode(data + '=' * (-len(data) % 4))


def mask_secret(value: Optional[str]) -> Optional[str]:
    """Show only the first two and last four characters of a secret."""
    if not value:
        return None
    return f"{value[:2]}…{value[-4:]}"
