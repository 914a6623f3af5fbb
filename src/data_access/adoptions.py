import logging

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from data_access.dynamodb import GSI1, GSI2, META_SK, is_conditional_failure, query_all, strip_keys, to_dynamo
from data_access.pets import PET_PREFIX, pet_key
from models.adoption import ACCEPTED, PENDING, AdoptionRequest
from models.ids import utcnow

logger = logging.getLogger(__name__)

ADOPTION_PREFIX = "ADOPTION#"
REQUESTER_PREFIX = "REQUESTER#"


def adoption_key(adoption_id: str) -> dict:
    return {"PK": f"{ADOPTION_PREFIX}{adoption_id}", "SK": META_SK}


class AdoptionRepository:
    def __init__(self, table):
        self.table = table

    def create_request(self, request: AdoptionRequest) -> AdoptionRequest:
        created_at = request.created_at.isoformat()
        item = {
            **adoption_key(request.adoption_id),
            "GSI1PK": f"{PET_PREFIX}{request.pet_id}",
            "GSI1SK": f"{ADOPTION_PREFIX}{created_at}",
            "GSI2PK": f"{REQUESTER_PREFIX}{request.requester_email}",
            "GSI2SK": created_at,
            **request.model_dump(mode="json"),
        }
        self.table.put_item(
            Item=to_dynamo(item),
            ConditionExpression="attribute_not_exists(PK)"
        )
        return request

    def get_request(self, adoption_id: str) -> AdoptionRequest | None:
        response = self.table.get_item(Key=adoption_key(adoption_id), ConsistentRead=True)
        item = response.get("Item")
        return AdoptionRequest(**strip_keys(item, "updated_at")) if item else None

    def list_requests_for_pet(self, pet_id: str) -> list[AdoptionRequest]:
        items = query_all(
            self.table,
            IndexName=GSI1,
            KeyConditionExpression=Key("GSI1PK").eq(f"{PET_PREFIX}{pet_id}") &
                                 Key("GSI1SK").begins_with(ADOPTION_PREFIX),
            ScanIndexForward=False,
        )
        return [AdoptionRequest(**strip_keys(item, "updated_at")) for item in items]

    def list_requests_by_requester(self, email: str) -> list[AdoptionRequest]:
        items = query_all(
            self.table,
            IndexName=GSI2,
            KeyConditionExpression=Key("GSI2PK").eq(f"{REQUESTER_PREFIX}{email}"),
            ScanIndexForward=False,
        )
        return [AdoptionRequest(**strip_keys(item, "updated_at")) for item in items]

    def accept_request(self, adoption_id: str, pet_id: str) -> bool:
        """
        Marks the request accepted and the pet adopted in one transaction.

        Both writes are conditional: the request must still be pending and the
        pet must not be adopted yet. Returns False when either condition fails,
        in which case neither item is changed.
        """
        now = utcnow().isoformat()
        try:
            self.table.meta.client.transact_write_items(
                TransactItems=[
                    {
                        "Update": {
                            "TableName": self.table.name,
                            "Key": adoption_key(adoption_id),
                            "UpdateExpression": "SET #status = :accepted, updated_at = :now",
                            "ConditionExpression": "#status = :pending",
                            "ExpressionAttributeNames": {"#status": "status"},
                            "ExpressionAttributeValues": {
                                ":accepted": ACCEPTED,
                                ":pending": PENDING,
                                ":now": now,
                            },
                        }
                    },
                    {
                        "Update": {
                            "TableName": self.table.name,
                            "Key": pet_key(pet_id),
                            "UpdateExpression": "SET adopted = :adopted",
                            "ConditionExpression": "attribute_exists(PK) AND adopted = :available",
                            "ExpressionAttributeValues": {
                                ":adopted": True,
                                ":available": False,
                            },
                        }
                    },
                ]
            )
            return True
        except ClientError as e:
            if e.response['Error']['Code'] == 'TransactionCanceledException':
                logger.info(f"Accept of adoption {adoption_id} cancelled: {e.response['Error'].get('Message')}")
                return False
            raise

    def update_status_if_pending(self, adoption_id: str, status: str) -> bool:
        try:
            self.table.update_item(
                Key=adoption_key(adoption_id),
                UpdateExpression="SET #status = :s, updated_at = :now",
                ConditionExpression="#status = :pending",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={
                    ":s": status,
                    ":pending": PENDING,
                    ":now": utcnow().isoformat(),
                },
            )
            return True
        except ClientError as e:
            if is_conditional_failure(e):
                logger.info(f"Adoption {adoption_id} is no longer pending, status {status} not applied.")
                return False
            raise
