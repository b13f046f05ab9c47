"""
Request parameter normalization.

Standard keys work across model back-ends (``temperature``, ``max_tokens``,
``tools``, ``tool_choice``, ...). Anything else is provider specific and is
moved under ``extra``, which adapters forward unchanged.
"""

from __future__ import annotations

from typing import Any

STANDARD_KEYS = frozenset(
    {
        "temperature",
        "max_tokens",
        "top_p",
        "tools",
        "tool_choice",
        "stop",
        "response_format",
        "user",
        "parallel_tool_calls",
        "seed",
    }
)


def normalize_params(params: dict[str, Any] | None) -> dict[str, Any]:
    """
    Normalize caller params into ``{<standard keys>..., "extra": {...}}``.

    ``None`` values are dropped, so ``{"max_tokens": None}`` means "let the
    adapter decide". An explicit ``extra`` dict wins over moved keys.

    >>> normalize_params({"max_tokens": 100, "reasoning_effort": "low"})
    {'max_tokens': 100, 'extra': {'reasoning_effort': 'low'}}
    """
    if params is None:
        return {"extra": {}}
    if not isinstance(params, dict):
        raise TypeError(f"params must be a dict, got {type(params).__name__}")

    user_extra = params.get("extra") or {}
    if not isinstance(user_extra, dict):
        raise TypeError("params['extra'] must be a dict")

    std: dict[str, Any] = {}
    moved: dict[str, Any] = {}
    for key, value in params.items():
        if key == "extra" or value is None:
            continue
        if key in STANDARD_KEYS:
            std[key] = value
        else:
            moved[key] = value

    std["extra"] = {**moved, **user_extra}
    return std
