from __future__ import annotations

from .mocks import ANY, FakeDynamoDBClient
from .runtime import StaticClientProvider


def fake_provider() -> tuple[StaticClientProvider, FakeDynamoDBClient]:
    client = FakeDynamoDBClient()
    return StaticClientProvider(client), client


__all__ = [
    "ANY",
    "FakeDynamoDBClient",
    "fake_provider",
]
