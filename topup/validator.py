"""Declarative field validation for request dataclasses."""

from __future__ import annotations

import dataclasses
import enum
import re
from collections.abc import Mapping
from typing import Any

from topup.models import PurchaseHistoryStatus
from topup.schema import OrderConfirmRequest

_MESSAGES = {
    "required": "{0} is a required field",
    "min": "{0} must be at least {1} characters long",
    "max": "{0} must not exceed {1} characters",
    "numeric": "{0} must contain only numeric characters",
    "purchasehistorystatus": "{0} must be one of: pending, confirm, success, failed",
}

_NUMERIC = re.compile(r"^[-+]?[0-9]+(?:\.[0-9]+)?$")
_STATUSES = frozenset(status.value for status in PurchaseHistoryStatus)

_DEFAULT_RULES: dict[type, dict[str, str]] = {
    OrderConfirmRequest: {"status": "purchasehistorystatus"},
}


class ValidationError(ValueError):
    """One or more fields broke their rules."""

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__("validation failed: [" + " ".join(self.messages) + "]")


def _display_name(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_"))


def _text(value: Any) -> str:
    if isinstance(value, enum.Enum):
        return str(value.value)
    return "" if value is None else str(value)


def _size(value: Any) -> float:
    if isinstance(value, enum.Enum):
        value = value.value
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value)
    if isinstance(value, (int, float)):
        return value
    raise TypeError(f"cannot measure value of type {type(value).__name__}")


def _is_zero(value: Any) -> bool:
    if isinstance(value, enum.Enum):
        value = value.value
    return value is None or value == 0 or value is False or (hasattr(value, "__len__") and len(value) == 0)


def _check(rule: str, param: str, value: Any) -> bool:
    if rule == "required":
        return not _is_zero(value)
    if rule == "min":
        return _size(value) >= float(param)
    if rule == "max":
        return _size(value) <= float(param)
    if rule == "numeric":
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return True
        return bool(_NUMERIC.match(_text(value)))
    if rule == "purchasehistorystatus":
        return _text(value) in _STATUSES
    raise ValueError(f"undefined validation function {rule!r}")


def _parse(tag: str) -> list[tuple[str, str]]:
    rules = []
    for part in tag.split(","):
        part = part.strip()
        if not part:
            continue
        name, _, param = part.partition("=")
        rules.append((name, param))
    return rules


class Validator:
    """Checks dataclass fields against rules such as "required,min=3".

    Rules come from the validator's rule table, keyed by class and field name,
    and from a field's "validate" metadata entry.
    """

    def __init__(self, rules: Mapping[type, Mapping[str, str]] | None = None) -> None:
        self._rules: dict[type, dict[str, str]] = {cls: dict(fields) for cls, fields in _DEFAULT_RULES.items()}
        for cls, fields in (rules or {}).items():
            self._rules.setdefault(cls, {}).update(fields)

    def validate(self, data: Any) -> Any:
        """Return the data unchanged, or raise ValidationError listing every broken rule."""
        if not dataclasses.is_dataclass(data) or isinstance(data, type):
            raise TypeError(f"cannot validate value of type {type(data).__name__}")
        messages = self._collect(data)
        if messages:
            raise ValidationError(messages)
        return data

    def _tag_for(self, data: Any, item: dataclasses.Field) -> str:
        table = self._rules.get(type(data), {})
        tags = [tag for tag in (table.get(item.name), item.metadata.get("validate")) if tag]
        return ",".join(tags)

    def _collect(self, data: Any) -> list[str]:
        messages: list[str] = []
        for item in dataclasses.fields(data):
            value = getattr(data, item.name)
            for rule, param in _parse(self._tag_for(data, item)):
                if not _check(rule, param, value):
                    template = _MESSAGES.get(rule, "{0} failed on the " + rule + " rule")
                    messages.append(template.format(_display_name(item.name), param))
            if dataclasses.is_dataclass(value) and not isinstance(value, type):
                messages.extend(self._collect(value))
        return messages