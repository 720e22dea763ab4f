"""Type-directed formatting and validation of caller-supplied values."""
from __future__ import annotations

import json
import os
from datetime import date, datetime
from decimal import Decimal
from numbers import Number
from typing import Any

from docx_templater.config import DEFAULT_CONFIG, PatcherConfig
from docx_templater.model.placeholder import PlaceholderToken, TypeTag
from docx_templater.processor.image_processor import ImageSource

_FALSE_STRINGS = {"", "0", "false", "no", "off"}


def format_value(token: PlaceholderToken, value: Any, config: PatcherConfig = DEFAULT_CONFIG) -> str:
    """Render ``value`` as the text a placeholder of ``token``'s type should show.

    The result is not escaped; callers escape for their target markup.
    """
    if not token.typed:
        return format_plain(value, config)

    tag = token.declared_type
    if tag is TypeTag.NUMBER:
        return _format_number(value)
    if tag is TypeTag.BOOLEAN:
        return _boolean_label(_to_bool(value), config)
    if tag is TypeTag.DATE:
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        return "" if value is None else str(value)
    return format_plain(value, config)


def format_plain(value: Any, config: PatcherConfig = DEFAULT_CONFIG) -> str:
    """Generic formatting for placeholders without a type annotation."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return _boolean_label(value, config)
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, default=str, ensure_ascii=False)
    return str(value)


def validate_value(token: PlaceholderToken, value: Any) -> bool:
    """Check ``value`` against the declared type of ``token``."""
    if not token.recognized:
        return True
    tag = token.declared_type
    if tag is TypeTag.TEXT:
        return isinstance(value, str) or _is_numeric(value)
    if tag is TypeTag.NUMBER:
        return _is_numeric(value)
    if tag is TypeTag.BOOLEAN:
        return isinstance(value, bool)
    if tag is TypeTag.DATE:
        return isinstance(value, (date, datetime, str))
    if tag is TypeTag.IMAGE:
        return isinstance(value, (ImageSource, bytes, bytearray, str, os.PathLike))
    return True


def _format_number(value: Any) -> str:
    if isinstance(value, bool):
        return str(int(value))
    try:
        if isinstance(value, (int, Decimal)):
            return str(int(value))
        return str(int(float(value)))
    except (TypeError, ValueError, OverflowError):
        return "" if value is None else str(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def _boolean_label(flag: bool, config: PatcherConfig) -> str:
    yes, no = config.boolean_labels
    return yes if flag else no


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, Number):
        return True
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False
