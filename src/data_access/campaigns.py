import logging

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from core.errors import Conflict
from data_access.dynamodb import (
    GSI2, META_SK, from_dynamo, is_conditional_failure, query_all, strip_keys, to_dynamo
)
from models.donation import DonationCampaign, DonationEntry

logger = logging.getLogger(__name__)

CAMPAIGN_PREFIX = "CAMPAIGN#"
CAMPAIGNS_PARTITION = "CAMPAIGNS"

# Bookkeeping attributes that never leave the data layer.
INTERNAL_ATTRIBUTES = ("payment_ids", "version")


class StaleCampaignError(Conflict):
    default_detail = "Campaign was modified concurrently, please retry"


def campaign_key(campaign_id: str) -> dict:
    return {"PK": f"{CAMPAIGN_PREFIX}{campaign_id}", "SK": META_SK}


class CampaignRepository:
    """
    Donation campaigns with their embedded donator ledger.

    Every write to ``donators`` bumps ``version``. Appends use ``list_append``
    and need no guard; removals rewrite the list and are guarded by the
    version read, so no concurrent append or removal is ever lost.
    """

    def __init__(self, table):
        self.table = table

    def create_campaign(self, campaign: DonationCampaign) -> DonationCampaign:
        created_at = campaign.created_at.isoformat()
        item = {
            **campaign_key(campaign.campaign_id),
            "GSI2PK": CAMPAIGNS_PARTITION,
            "GSI2SK": created_at,
            **campaign.model_dump(mode="json"),
            "version": 0,
        }
        self.table.put_item(
            Item=to_dynamo(item),
            ConditionExpression="attribute_not_exists(PK)"
        )
        logger.info(f"Created campaign {campaign.campaign_id} for {campaign.owner_email}")
        return campaign

    def _get_item(self, campaign_id: str) -> dict | None:
        response = self.table.get_item(Key=campaign_key(campaign_id), ConsistentRead=True)
        return response.get("Item")

    def get_campaign(self, campaign_id: str) -> DonationCampaign | None:
        item = self._get_item(campaign_id)
        return DonationCampaign(**strip_keys(item, *INTERNAL_ATTRIBUTES)) if item else None

    def list_campaigns(self) -> list[DonationCampaign]:
        items = query_all(
            self.table,
            IndexName=GSI2,
            KeyConditionExpression=Key("GSI2PK").eq(CAMPAIGNS_PARTITION),
            ScanIndexForward=False,
        )
        return [DonationCampaign(**strip_keys(item, *INTERNAL_ATTRIBUTES)) for item in items]

    def append_donation(self, campaign_id: str, entry: DonationEntry) -> bool:
        """Returns False when the campaign does not exist."""
        try:
            self.table.update_item(
                Key=campaign_key(campaign_id),
                UpdateExpression="SET donators = list_append(if_not_exists(donators, :empty), :entry), "
                                 "#version = #version + :one",
                ConditionExpression="attribute_exists(PK)",
                ExpressionAttributeNames={"#version": "version"},
                ExpressionAttributeValues={
                    ":entry": [to_dynamo(entry.model_dump(mode="json"))],
                    ":empty": [],
                    ":one": 1,
                },
            )
            return True
        except ClientError as e:
            if is_conditional_failure(e):
                return False
            raise

    def append_confirmed_donation(self, campaign_id: str, entry: DonationEntry) -> bool:
        """
        Appends an entry carrying a provider payment id, recording the id in
        ``payment_ids`` in the same update. Returns False when the campaign is
        missing or the payment id was already recorded.
        """
        try:
            self.table.update_item(
                Key=campaign_key(campaign_id),
                UpdateExpression="SET donators = list_append(if_not_exists(donators, :empty), :entry), "
                                 "#version = #version + :one "
                                 "ADD payment_ids :payment_set",
                ConditionExpression="attribute_exists(PK) AND "
                                    "(attribute_not_exists(payment_ids) OR NOT contains(payment_ids, :payment_id))",
                ExpressionAttributeNames={"#version": "version"},
                ExpressionAttributeValues={
                    ":entry": [to_dynamo(entry.model_dump(mode="json"))],
                    ":empty": [],
                    ":one": 1,
                    ":payment_set": {entry.payment_id},
                    ":payment_id": entry.payment_id,
                },
            )
            return True
        except ClientError as e:
            if is_conditional_failure(e):
                logger.info(f"Idempotency check: payment {entry.payment_id} not appended to campaign {campaign_id}.")
                return False
            raise

    @retry(
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        stop=stop_after_attempt(5),
        retry=retry_if_exception_type(StaleCampaignError),
        reraise=True
    )
    def remove_donations_by_email(self, campaign_id: str, donor_email: str) -> list[DonationEntry] | None:
        """
        Removes every ledger entry of ``donor_email``.

        Returns None when the campaign does not exist, otherwise the removed
        entries (possibly empty, in which case nothing is written).
        """
        item = self._get_item(campaign_id)
        if not item:
            return None

        donators = item.get("donators", [])
        removed = [d for d in donators if d.get("donor_email") == donor_email]
        if not removed:
            return []
        kept = [d for d in donators if d.get("donor_email") != donor_email]

        try:
            self.table.update_item(
                Key=campaign_key(campaign_id),
                UpdateExpression="SET donators = :kept, #version = #version + :one",
                ConditionExpression="#version = :expected",
                ExpressionAttributeNames={"#version": "version"},
                ExpressionAttributeValues={
                    ":kept": kept,
                    ":one": 1,
                    ":expected": item["version"],
                },
            )
        except ClientError as e:
            if is_conditional_failure(e):
                logger.info(f"Campaign {campaign_id} changed during refund, retrying.")
                raise StaleCampaignError() from e
            raise

        return [DonationEntry(**entry) for entry in from_dynamo(removed)]

    def set_paused(self, campaign_id: str, expected: bool, paused: bool) -> bool:
        try:
            self.table.update_item(
                Key=campaign_key(campaign_id),
                UpdateExpression="SET paused = :paused",
                ConditionExpression="paused = :expected",
                ExpressionAttributeValues={
                    ":paused": paused,
                    ":expected": expected,
                },
            )
            return True
        except ClientError as e:
            if is_conditional_failure(e):
                return False
            raise
