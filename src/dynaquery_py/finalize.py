from __future__ import annotations

import copy
import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

logger = logging.getLogger(__name__)

type Finalizer = Callable[[Mapping[str, Any]], dict[str, Any]]

EXPRESSION_FIELDS = (
    "KeyConditionExpression",
    "FilterExpression",
    "ProjectionExpression",
    "ConditionExpression",
    "UpdateExpression",
)

_NAME_TOKEN = re.compile(r"#[A-Za-z0-9_]+")
_VALUE_TOKEN = re.compile(r":[A-Za-z0-9_]+")


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (str, bytes, bytearray)) and len(value) == 0:
        return True
    if isinstance(value, (list, dict, set, tuple)) and len(value) == 0:
        return True
    return False


def referenced_placeholders(request: Mapping[str, Any]) -> tuple[set[str], set[str]]:
    names: set[str] = set()
    values: set[str] = set()
    for field in EXPRESSION_FIELDS:
        expr = request.get(field)
        if not isinstance(expr, str):
            continue
        names.update(_NAME_TOKEN.findall(expr))
        values.update(_VALUE_TOKEN.findall(expr))
    return names, values


def _prune(out: dict[str, Any], field: str, used: set[str]) -> None:
    mapping = out.get(field)
    if not isinstance(mapping, Mapping):
        return

    kept = {k: v for k, v in mapping.items() if k in used}
    dropped = sorted(str(k) for k in mapping if k not in used)
    if dropped:
        logger.debug("pruned unused %s: %s", field, ", ".join(dropped))

    if kept:
        out[field] = kept
    else:
        out.pop(field, None)


def finalize_request(request: Mapping[str, Any], *, prune_placeholders: bool = True) -> dict[str, Any]:
    out = {k: copy.deepcopy(v) for k, v in request.items() if not _is_empty(v)}

    if prune_placeholders:
        used_names, used_values = referenced_placeholders(out)
        _prune(out, "ExpressionAttributeNames", used_names)
        _prune(out, "ExpressionAttributeValues", used_values)

    return out
