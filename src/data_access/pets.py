import logging

from boto3.dynamodb.conditions import Attr, Key

from data_access.dynamodb import GSI1, GSI2, META_SK, query_all, strip_keys, to_dynamo
from models.pet import Pet

logger = logging.getLogger(__name__)

PET_PREFIX = "PET#"
OWNER_PREFIX = "OWNER#"
PETS_PARTITION = "PETS"


def pet_key(pet_id: str) -> dict:
    return {"PK": f"{PET_PREFIX}{pet_id}", "SK": META_SK}


class PetRepository:
    def __init__(self, table):
        self.table = table

    def create_pet(self, pet: Pet) -> Pet:
        created_at = pet.created_at.isoformat()
        item = {
            **pet_key(pet.pet_id),
            "GSI1PK": f"{OWNER_PREFIX}{pet.owner_email}",
            "GSI1SK": f"{PET_PREFIX}{created_at}",
            "GSI2PK": PETS_PARTITION,
            "GSI2SK": created_at,
            **pet.model_dump(mode="json"),
            "name_lower": pet.name.lower(),
        }
        self.table.put_item(
            Item=to_dynamo(item),
            ConditionExpression="attribute_not_exists(PK)"
        )
        logger.info(f"Created pet {pet.pet_id} for {pet.owner_email}")
        return pet

    def get_pet(self, pet_id: str) -> Pet | None:
        response = self.table.get_item(Key=pet_key(pet_id), ConsistentRead=True)
        item = response.get("Item")
        return Pet(**strip_keys(item, "name_lower")) if item else None

    def list_pets_by_owner(self, owner_email: str) -> list[Pet]:
        items = query_all(
            self.table,
            IndexName=GSI1,
            KeyConditionExpression=Key("GSI1PK").eq(f"{OWNER_PREFIX}{owner_email}") &
                                 Key("GSI1SK").begins_with(PET_PREFIX),
        )
        return [Pet(**strip_keys(item, "name_lower")) for item in items]

    def list_available_pets(self, search: str | None = None, category: str | None = None) -> list[Pet]:
        """Unadopted pets, newest first."""
        condition = Attr("adopted").eq(False)
        if search:
            condition = condition & Attr("name_lower").contains(search.lower())
        if category:
            condition = condition & Attr("category").eq(category)

        items = query_all(
            self.table,
            IndexName=GSI2,
            KeyConditionExpression=Key("GSI2PK").eq(PETS_PARTITION),
            FilterExpression=condition,
            ScanIndexForward=False,
        )
        return [Pet(**strip_keys(item, "name_lower")) for item in items]
