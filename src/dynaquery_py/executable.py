from __future__ import annotations

import copy
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Literal

from botocore.exceptions import ClientError

from .aws_errors import map_client_error as _map_client_error
from .aws_errors import map_transaction_error as _map_transaction_error
from .errors import ValidationError

logger = logging.getLogger(__name__)

type OperationKind = Literal["Query", "Scan"]

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def client_method_name(operation: str) -> str:
    name = str(operation or "").strip()
    if not name:
        raise ValidationError("operation is required")
    if "_" in name:
        return name.lower()
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(value)
    if isinstance(value, bytearray):
        return bytes(value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    if isinstance(value, frozenset):
        return set(value)
    return copy.deepcopy(value)


@dataclass(frozen=True, eq=False)
class ExecutableRequest:
    """Finalized request bound to a client.

    ``request`` is frozen all the way down: maps become read-only proxies and
    lists become tuples. ``to_kwargs()`` returns a mutable dict/list copy in
    the shape boto3 expects. Equality and hashing are by identity.
    """

    client: Any
    request: Mapping[str, Any]
    operation: OperationKind = "Scan"

    def __post_init__(self) -> None:
        object.__setattr__(self, "request", _freeze(self.request))

    def to_kwargs(self) -> dict[str, Any]:
        return _thaw(self.request)

    def __copy__(self) -> ExecutableRequest:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> ExecutableRequest:
        # The client is borrowed, never copied.
        return ExecutableRequest(client=self.client, request=self.to_kwargs(), operation=self.operation)

    def __reduce__(self) -> tuple[Any, ...]:
        return (ExecutableRequest, (self.client, self.to_kwargs(), self.operation))

    def execute(self, operation: str | None = None) -> Any:
        method_name = client_method_name(operation or self.operation)
        method = getattr(self.client, method_name, None)
        if not callable(method):
            raise ValidationError(f"client does not support operation: {method_name}")

        logger.debug("dispatching %s with fields %s", method_name, sorted(self.request))
        try:
            return method(**self.to_kwargs())
        except ClientError as err:
            if method_name == "transact_write_items":
                raise _map_transaction_error(err) from err
            raise _map_client_error(err) from err

    def __getattr__(self, name: str) -> Callable[[], Any]:
        if name.startswith("_"):
            raise AttributeError(name)

        def call() -> Any:
            return self.execute(name)

        return call
