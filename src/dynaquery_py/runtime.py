from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, cast

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AwsCallMetric:
    service: str
    operation: str
    seconds: float
    ok: bool


def is_lambda_environment(environ: Mapping[str, str] = os.environ) -> bool:
    return bool(
        environ.get("AWS_LAMBDA_FUNCTION_NAME") or "AWS_Lambda" in (environ.get("AWS_EXECUTION_ENV") or "")
    )


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = (environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as err:
        raise ValueError(f"{name} must be a number, got {raw!r}") from err


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = (environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as err:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from err


@dataclass(frozen=True)
class ClientSettings:
    region: str | None = None
    endpoint_url: str | None = None
    connect_timeout: float = 60.0
    read_timeout: float = 60.0
    max_attempts: int = 3

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> ClientSettings:
        # Shorter timeouts inside Lambda.
        if is_lambda_environment(environ):
            connect_default, read_default = 1.0, 3.0
        else:
            connect_default, read_default = 60.0, 60.0

        return cls(
            region=environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION") or None,
            endpoint_url=(environ.get("DYNAMODB_ENDPOINT") or "").strip() or None,
            connect_timeout=_env_float(environ, "DYNAQUERY_CONNECT_TIMEOUT", connect_default),
            read_timeout=_env_float(environ, "DYNAQUERY_READ_TIMEOUT", read_default),
            max_attempts=_env_int(environ, "DYNAQUERY_MAX_ATTEMPTS", 3),
        )


def create_boto3_config(settings: ClientSettings | None = None) -> Config:
    settings = settings or ClientSettings()
    return Config(
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        retries={"max_attempts": settings.max_attempts, "mode": "adaptive"},
    )


class _InstrumentedClient:
    def __init__(self, client: Any, service: str, on_call: Callable[[AwsCallMetric], None]) -> None:
        self._client = client
        self._service = service
        self._on_call = on_call

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._client, name)
        if name.startswith("_") or not callable(attr):
            return attr

        def wrapped(*args: Any, **kwargs: Any) -> Any:
            start = time.monotonic()
            try:
                out = attr(*args, **kwargs)
            except Exception:
                self._on_call(
                    AwsCallMetric(
                        service=self._service,
                        operation=name,
                        seconds=time.monotonic() - start,
                        ok=False,
                    )
                )
                raise

            self._on_call(
                AwsCallMetric(
                    service=self._service,
                    operation=name,
                    seconds=time.monotonic() - start,
                    ok=True,
                )
            )
            return out

        return wrapped


def instrument_boto3_client(
    client: Any,
    *,
    service: str,
    on_call: Callable[[AwsCallMetric], None],
) -> Any:
    return _InstrumentedClient(client, service, on_call)


# Keyed on the full settings plus the explicit session (None for the default one).
_dynamodb_clients: dict[tuple[ClientSettings, Any], Any] = {}


def get_dynamodb_client(
    *,
    settings: ClientSettings | None = None,
    session: Any | None = None,
    metrics: Callable[[AwsCallMetric], None] | None = None,
) -> Any:
    settings = settings or ClientSettings.from_env()
    key = (settings, session)
    client = _dynamodb_clients.get(key)
    if client is None:
        logger.debug("creating dynamodb client region=%s endpoint=%s", settings.region, settings.endpoint_url)
        sess = session or boto3.session.Session(region_name=settings.region)
        client = cast(Any, sess).client(
            "dynamodb",
            region_name=settings.region,
            endpoint_url=settings.endpoint_url,
            config=create_boto3_config(settings),
        )
        _dynamodb_clients[key] = client

    if metrics is not None:
        return instrument_boto3_client(client, service="dynamodb", on_call=metrics)
    return client


def _reset_dynamodb_clients_for_tests() -> None:
    _dynamodb_clients.clear()


class ClientProvider(Protocol):
    def get_client(self) -> Any: ...


class StaticClientProvider:
    def __init__(self, client: Any) -> None:
        if client is None:
            raise ValueError("client is required")
        self._client = client

    def get_client(self) -> Any:
        return self._client


class Boto3ClientProvider:
    def __init__(
        self,
        *,
        settings: ClientSettings | None = None,
        session: Any | None = None,
        metrics: Callable[[AwsCallMetric], None] | None = None,
    ) -> None:
        self._settings = settings
        self._session = session
        self._metrics = metrics
        self._client: Any | None = None

    def get_client(self) -> Any:
        if self._client is None:
            self._client = get_dynamodb_client(
                settings=self._settings,
                session=self._session,
                metrics=self._metrics,
            )
        return self._client
