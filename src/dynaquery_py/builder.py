from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from boto3.dynamodb.types import TypeSerializer

from .errors import InvalidFieldNameError, UnsupportedOperationError, ValidationError
from .executable import ExecutableRequest, OperationKind
from .finalize import Finalizer, finalize_request

if TYPE_CHECKING:
    from .runtime import ClientProvider

logger = logging.getLogger(__name__)

_SET_PREFIX = "set"
_HAS_PREFIX = "has"


def _field_from(method: str, prefix: str) -> str:
    field = method[len(prefix) :]
    if not field:
        raise InvalidFieldNameError(prefix=prefix)
    return field


class RequestBuilder:
    """Fluent builder for a DynamoDB request body.

    Fields are set by name, either explicitly with ``set("TableName", ...)``
    or through dynamic ``set<Field>``/``has<Field>`` attributes, where
    ``<Field>`` is the literal request key::

        builder.setTableName("Users").setKeyConditionExpression("id = :id")
        builder.setExpressionAttributeValue(":id", {"S": "42"})
        builder.prepare().execute()  # client.query(**request)

    The builder is single-owner and not thread-safe. ``prepare()`` can be
    called repeatedly; each call derives a fresh ``ExecutableRequest``.
    """

    def __init__(
        self,
        provider: ClientProvider | None = None,
        *,
        finalizer: Finalizer | None = None,
    ) -> None:
        if provider is None:
            from .runtime import Boto3ClientProvider

            provider = Boto3ClientProvider()

        self._provider: ClientProvider = provider
        self._finalizer: Finalizer = finalizer or finalize_request
        self._request: dict[str, Any] = {}
        self._serializer = TypeSerializer()

    def hydrate(self, request: Mapping[str, Any]) -> RequestBuilder:
        self._request = copy.deepcopy(dict(request))
        return self

    def set(self, field: str, value: Any = None) -> RequestBuilder:
        if not isinstance(field, str) or not field:
            raise InvalidFieldNameError(prefix=_SET_PREFIX)
        self._request[field] = value
        return self

    def has(self, field: str) -> bool:
        if not isinstance(field, str) or not field:
            raise InvalidFieldNameError(prefix=_HAS_PREFIX)
        return field in self._request

    def get(self, field: str, default: Any = None) -> Any:
        return self._request.get(field, default)

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._request)

    def __len__(self) -> int:
        return len(self._request)

    def set_expression_attribute_name(self, placeholder: str, name: str) -> RequestBuilder:
        self._accumulate("ExpressionAttributeNames", placeholder, name)
        return self

    def set_expression_attribute_value(self, placeholder: str, value: Any) -> RequestBuilder:
        self._accumulate("ExpressionAttributeValues", placeholder, value)
        return self

    def set_typed_expression_attribute_value(self, placeholder: str, value: Any) -> RequestBuilder:
        """Like ``set_expression_attribute_value`` but marshals a plain Python
        value into DynamoDB's attribute-value form (``"x"`` -> ``{"S": "x"}``)."""
        return self.set_expression_attribute_value(placeholder, self._serializer.serialize(value))

    setExpressionAttributeName = set_expression_attribute_name
    setExpressionAttributeValue = set_expression_attribute_value

    def _accumulate(self, field: str, placeholder: str, value: Any) -> None:
        if not placeholder:
            raise ValidationError(f"{field}: placeholder must be non-empty")

        current = self._request.get(field)
        if current is None:
            current = {}
        elif isinstance(current, Mapping):
            current = dict(current)
        else:
            raise ValidationError(f"{field} must be a map, got {type(current).__name__}")

        current[placeholder] = value
        self._request[field] = current

    def operation_kind(self) -> OperationKind:
        if self.has("KeyConditionExpression"):
            return "Query"
        return "Scan"

    getOperationKind = operation_kind

    def prepare(self, client: Any | None = None) -> ExecutableRequest:
        operation = self.operation_kind()
        finalized = self._finalizer(copy.deepcopy(self._request))
        chosen = client if client is not None else self._provider.get_client()

        logger.debug(
            "prepared %s request for table %s with fields %s",
            operation,
            finalized.get("TableName"),
            sorted(finalized),
        )
        return ExecutableRequest(client=chosen, request=finalized, operation=operation)

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(name)

        if name.startswith(_SET_PREFIX):
            field = _field_from(name, _SET_PREFIX)

            def setter(value: Any = None, *_ignored: Any) -> RequestBuilder:
                return self.set(field, value)

            return setter

        if name.startswith(_HAS_PREFIX):
            field = _field_from(name, _HAS_PREFIX)

            def predicate() -> bool:
                return self.has(field)

            return predicate

        raise UnsupportedOperationError(name=name, owner=type(self).__name__)
