from __future__ import annotations

import uuid

from dynaquery_py import Boto3ClientProvider, ClientSettings, RequestBuilder


def main() -> None:
    settings = ClientSettings.from_env()
    if settings.endpoint_url is None:
        settings = ClientSettings(region=settings.region or "us-east-1", endpoint_url="http://localhost:8000")
    provider = Boto3ClientProvider(settings=settings)
    table_name = f"dynaquery_py_example_{uuid.uuid4().hex[:12]}"

    (
        RequestBuilder(provider)
        .setTableName(table_name)
        .setKeySchema([{"AttributeName": "pk", "KeyType": "HASH"}, {"AttributeName": "sk", "KeyType": "RANGE"}])
        .setAttributeDefinitions(
            [
                {"AttributeName": "pk", "AttributeType": "S"},
                {"AttributeName": "sk", "AttributeType": "S"},
            ]
        )
        .setBillingMode("PAY_PER_REQUEST")
        .prepare()
        .createTable()
    )
    client = provider.get_client()
    client.get_waiter("table_exists").wait(TableName=table_name)

    try:
        for sk in ("001", "010", "100"):
            RequestBuilder(provider).setTableName(table_name).setItem(
                {"pk": {"S": "A"}, "sk": {"S": sk}}
            ).prepare().putItem()

        query = RequestBuilder(provider).setTableName(table_name)
        query.setKeyConditionExpression("pk = :pk AND begins_with(sk, :prefix)")
        query.set_typed_expression_attribute_value(":pk", "A")
        query.set_typed_expression_attribute_value(":prefix", "0")

        print("operation:", query.operation_kind())
        print("items:", query.prepare().execute()["Items"])
    finally:
        RequestBuilder(provider).setTableName(table_name).prepare().deleteTable()


if __name__ == "__main__":
    main()
