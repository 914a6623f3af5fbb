import logging
from decimal import Decimal
from typing import Any

from botocore.exceptions import ClientError

from models.user import UserProfile

logger = logging.getLogger(__name__)

USER_PREFIX = "USER#"
PROFILE_SK = "PROFILE"
META_SK = "META"

GSI1 = "GSI1"
GSI2 = "GSI2"

KEY_ATTRIBUTES = ("PK", "SK", "GSI1PK", "GSI1SK", "GSI2PK", "GSI2SK")


def create_table(dynamodb_resource, table_name: str):
    """Single table with two overloaded string GSIs, used by every repository."""
    attributes = [
        {"AttributeName": name, "AttributeType": "S"} for name in KEY_ATTRIBUTES
    ]
    indexes = [
        {
            "IndexName": index,
            "KeySchema": [
                {"AttributeName": f"{index}PK", "KeyType": "HASH"},
                {"AttributeName": f"{index}SK", "KeyType": "RANGE"},
            ],
            "Projection": {"ProjectionType": "ALL"},
        }
        for index in (GSI1, GSI2)
    ]
    table = dynamodb_resource.create_table(
        TableName=table_name,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=attributes,
        GlobalSecondaryIndexes=indexes,
        BillingMode="PAY_PER_REQUEST",
    )
    table.wait_until_exists()
    return table


def to_dynamo(value: Any) -> Any:
    """DynamoDB rejects floats and empty strings; None attributes are dropped."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items() if v is not None and v != ""}
    if isinstance(value, list):
        return [to_dynamo(v) for v in value]
    return value


def from_dynamo(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return value


def strip_keys(item: dict, *extra: str) -> dict:
    hidden = set(KEY_ATTRIBUTES) | set(extra)
    return from_dynamo({k: v for k, v in item.items() if k not in hidden})


def is_conditional_failure(error: ClientError) -> bool:
    return error.response['Error']['Code'] == 'ConditionalCheckFailedException'


def query_all(table, **kwargs) -> list[dict]:
    items = []
    while True:
        response = table.query(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


class UserRepository:
    def __init__(self, table):
        self.table = table

    def create_user_profile(self, profile: UserProfile) -> dict:
        item = {
            "PK": f"{USER_PREFIX}{profile.email}",
            "SK": PROFILE_SK,
            "email": profile.email,
            "name": profile.name,
            "user_id": profile.user_id,
            "role": profile.role,
            "created_at": profile.created_at.isoformat()
        }

        try:
            self.table.put_item(
                Item=to_dynamo(item),
                ConditionExpression="attribute_not_exists(PK)"
            )
            return strip_keys(item)
        except ClientError as e:
            if is_conditional_failure(e):
                logger.info(f"User profile already exists for {profile.email}")
                return self.get_user_profile(profile.email)
            else:
                raise

    def get_user_profile(self, email: str) -> dict | None:
        key = {
            "PK": f"{USER_PREFIX}{email}",
            "SK": PROFILE_SK
        }
        response = self.table.get_item(Key=key)
        item = response.get("Item")
        return strip_keys(item) if item else None
