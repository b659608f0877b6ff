from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence


def sanitize_form_data(data: Mapping[str, Any], empty_string_fields: Iterable[str] = ()) -> dict[str, Any]:
    """Normalize submitted form data before validation.

    - fields listed in ``empty_string_fields``: ``""`` becomes ``None``
    - any other ``None`` / ``""`` value is dropped
    - everything else is kept as-is
    """

    nullable = set(empty_string_fields)
    out: dict[str, Any] = {}
    for key, value in data.items():
        if value == "" and key in nullable:
            out[key] = None
        elif value is not None and value != "":
            out[key] = value
    return out


def sanitize_form_data_batch(
    items: Sequence[Mapping[str, Any]],
    empty_string_fields: Iterable[str] = (),
) -> list[dict[str, Any]]:
    fields = tuple(empty_string_fields)
    return [sanitize_form_data(item, fields) for item in items]


def default_form_values(
    template: Mapping[str, Any],
    overrides: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    defaults: dict[str, Any] = {}
    for key, value in template.items():
        # bool is a subclass of int
        if isinstance(value, bool):
            defaults[key] = False
        elif isinstance(value, str):
            defaults[key] = ""
        elif isinstance(value, (int, float)):
            defaults[key] = 0
        elif isinstance(value, (list, tuple)):
            defaults[key] = []
        elif isinstance(value, dict):
            defaults[key] = {}
        else:
            defaults[key] = None
    defaults.update(overrides or {})
    return defaults
