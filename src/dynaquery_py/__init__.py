from __future__ import annotations

import json
import re
from importlib.resources import files
from typing import TYPE_CHECKING, Any

from .builder import RequestBuilder
from .errors import (
    AwsError,
    ConditionFailedError,
    DynaqueryPyError,
    InvalidFieldNameError,
    NotFoundError,
    TransactionCanceledError,
    UnsupportedOperationError,
    ValidationError,
)
from .executable import ExecutableRequest, OperationKind, client_method_name
from .finalize import finalize_request, referenced_placeholders

if TYPE_CHECKING:
    from .runtime import (
        AwsCallMetric,
        Boto3ClientProvider,
        ClientProvider,
        ClientSettings,
        StaticClientProvider,
        create_boto3_config,
        get_dynamodb_client,
        instrument_boto3_client,
        is_lambda_environment,
    )


def _read_repo_version() -> str:
    try:
        data = json.loads(files(__package__).joinpath("version.json").read_text(encoding="utf-8"))
    except Exception:
        return "0.0.0"

    version = data.get("version")
    return version if isinstance(version, str) and version else "0.0.0"


def _normalize_repo_version(repo_version: str) -> str:
    match = re.match(r"^(\d+\.\d+\.\d+)-rc\.?([0-9]+)$", repo_version)
    if match:
        return f"{match.group(1)}rc{match.group(2)}"
    return repo_version


__repo_version__ = _read_repo_version()
__version__ = _normalize_repo_version(__repo_version__)


def __getattr__(name: str) -> Any:
    if name in {
        "AwsCallMetric",
        "Boto3ClientProvider",
        "ClientProvider",
        "ClientSettings",
        "StaticClientProvider",
        "create_boto3_config",
        "get_dynamodb_client",
        "instrument_boto3_client",
        "is_lambda_environment",
    }:
        from . import runtime

        return getattr(runtime, name)
    raise AttributeError(name)


__all__ = [
    "AwsCallMetric",
    "AwsError",
    "Boto3ClientProvider",
    "ClientProvider",
    "ClientSettings",
    "ConditionFailedError",
    "DynaqueryPyError",
    "ExecutableRequest",
    "InvalidFieldNameError",
    "NotFoundError",
    "OperationKind",
    "RequestBuilder",
    "StaticClientProvider",
    "TransactionCanceledError",
    "UnsupportedOperationError",
    "ValidationError",
    "__repo_version__",
    "__version__",
    "client_method_name",
    "create_boto3_config",
    "finalize_request",
    "get_dynamodb_client",
    "instrument_boto3_client",
    "is_lambda_environment",
    "referenced_placeholders",
]
