from __future__ import annotations

from datetime import UTC, datetime

import pytest

from dynaquery_py.mocks import FakeDynamoDBClient
from dynaquery_py.runtime import (
    Boto3ClientProvider,
    ClientSettings,
    StaticClientProvider,
    _reset_dynamodb_clients_for_tests,
    create_boto3_config,
    get_dynamodb_client,
    instrument_boto3_client,
    is_lambda_environment,
)


class FakeSession:
    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    def client(self, service_name: str, **kwargs: object) -> object:
        self.calls.append({"service": service_name, **kwargs})
        return {"created_at": datetime.now(tz=UTC).isoformat()}


def test_is_lambda_environment() -> None:
    assert is_lambda_environment({}) is False
    assert is_lambda_environment({"AWS_LAMBDA_FUNCTION_NAME": "fn"}) is True
    assert is_lambda_environment({"AWS_EXECUTION_ENV": "AWS_Lambda_python3.14"}) is True


def test_client_settings_from_env_defaults() -> None:
    settings = ClientSettings.from_env({})
    assert settings == ClientSettings()


def test_client_settings_from_env_reads_overrides() -> None:
    settings = ClientSettings.from_env(
        {
            "AWS_DEFAULT_REGION": "eu-west-1",
            "DYNAMODB_ENDPOINT": "http://localhost:8000",
            "DYNAQUERY_CONNECT_TIMEOUT": "2.5",
            "DYNAQUERY_READ_TIMEOUT": "4",
            "DYNAQUERY_MAX_ATTEMPTS": "5",
        }
    )
    assert settings.region == "eu-west-1"
    assert settings.endpoint_url == "http://localhost:8000"
    assert settings.connect_timeout == 2.5
    assert settings.read_timeout == 4.0
    assert settings.max_attempts == 5


def test_client_settings_prefers_aws_region() -> None:
    settings = ClientSettings.from_env({"AWS_REGION": "us-east-2", "AWS_DEFAULT_REGION": "eu-west-1"})
    assert settings.region == "us-east-2"


def test_client_settings_uses_short_timeouts_in_lambda() -> None:
    settings = ClientSettings.from_env({"AWS_LAMBDA_FUNCTION_NAME": "fn"})
    assert settings.connect_timeout == 1.0
    assert settings.read_timeout == 3.0


@pytest.mark.parametrize(
    ("name", "raw"),
    [
        ("DYNAQUERY_CONNECT_TIMEOUT", "soon"),
        ("DYNAQUERY_READ_TIMEOUT", "1s"),
        ("DYNAQUERY_MAX_ATTEMPTS", "2.5"),
    ],
)
def test_client_settings_rejects_malformed_numbers(name: str, raw: str) -> None:
    with pytest.raises(ValueError, match=name):
        ClientSettings.from_env({name: raw})


def test_create_boto3_config() -> None:
    cfg = create_boto3_config(ClientSettings(connect_timeout=2.0, read_timeout=4.0, max_attempts=3))
    assert cfg.connect_timeout == 2.0
    assert cfg.read_timeout == 4.0
    assert cfg.retries["max_attempts"] == 3
    assert cfg.retries["mode"] == "adaptive"


def test_instrument_boto3_client_records_calls() -> None:
    metrics: list[object] = []

    client = FakeDynamoDBClient()
    client.expect("query", response={})
    wrapped = instrument_boto3_client(client, service="dynamodb", on_call=metrics.append)
    wrapped.query(TableName="t")
    assert len(metrics) == 1
    assert metrics[0].operation == "query"
    assert metrics[0].ok is True

    client2 = FakeDynamoDBClient()
    client2.expect("scan", error=RuntimeError("boom"))
    wrapped2 = instrument_boto3_client(client2, service="dynamodb", on_call=metrics.append)
    with pytest.raises(RuntimeError, match="boom"):
        wrapped2.scan(TableName="t")
    assert len(metrics) == 2
    assert metrics[1].ok is False


def test_get_dynamodb_client_caches_by_region_and_endpoint() -> None:
    _reset_dynamodb_clients_for_tests()

    sess = FakeSession()
    local = ClientSettings(region="us-east-1", endpoint_url="http://localhost:8000")
    c1 = get_dynamodb_client(settings=local, session=sess)
    c2 = get_dynamodb_client(settings=local, session=sess)
    c3 = get_dynamodb_client(settings=ClientSettings(region="us-east-1"), session=sess)

    assert c1 is c2
    assert c3 is not c1
    assert len(sess.calls) == 2
    assert sess.calls[0]["service"] == "dynamodb"
    assert sess.calls[0]["endpoint_url"] == "http://localhost:8000"
    _reset_dynamodb_clients_for_tests()


def test_get_dynamodb_client_wraps_cached_client_with_metrics() -> None:
    _reset_dynamodb_clients_for_tests()

    sess = FakeSession()
    settings = ClientSettings(region="us-east-1")
    raw = get_dynamodb_client(settings=settings, session=sess)
    wrapped = get_dynamodb_client(settings=settings, session=sess, metrics=lambda _: None)

    assert wrapped is not raw
    assert wrapped._client is raw
    assert len(sess.calls) == 1
    _reset_dynamodb_clients_for_tests()


def test_static_client_provider() -> None:
    client = FakeDynamoDBClient()
    assert StaticClientProvider(client).get_client() is client

    with pytest.raises(ValueError, match="client is required"):
        StaticClientProvider(None)


def test_boto3_client_provider_resolves_once() -> None:
    _reset_dynamodb_clients_for_tests()

    sess = FakeSession()
    provider = Boto3ClientProvider(settings=ClientSettings(region="ap-south-1"), session=sess)
    assert sess.calls == []

    first = provider.get_client()
    second = provider.get_client()

    assert first is second
    assert len(sess.calls) == 1
    assert sess.calls[0]["region_name"] == "ap-south-1"
    _reset_dynamodb_clients_for_tests()


def test_get_dynamodb_client_keys_on_all_settings() -> None:
    _reset_dynamodb_clients_for_tests()

    sess = FakeSession()
    fast = get_dynamodb_client(settings=ClientSettings(region="us-east-1", read_timeout=1.0), session=sess)
    slow = get_dynamodb_client(settings=ClientSettings(region="us-east-1", read_timeout=30.0), session=sess)

    assert fast is not slow
    assert len(sess.calls) == 2
    assert sess.calls[0]["config"].read_timeout == 1.0
    assert sess.calls[1]["config"].read_timeout == 30.0
    _reset_dynamodb_clients_for_tests()


def test_get_dynamodb_client_keys_on_explicit_session() -> None:
    _reset_dynamodb_clients_for_tests()

    settings = ClientSettings(region="us-east-1")
    first, second = FakeSession(), FakeSession()
    c1 = get_dynamodb_client(settings=settings, session=first)
    c2 = get_dynamodb_client(settings=settings, session=second)

    assert c1 is not c2
    assert len(first.calls) == 1
    assert len(second.calls) == 1
    assert get_dynamodb_client(settings=settings, session=first) is c1
    _reset_dynamodb_clients_for_tests()
