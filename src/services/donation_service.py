import logging
import math

from core.errors import Conflict, Internal, InvalidInput, NoPriorDonation, NotFound
from data_access.campaigns import CampaignRepository
from models.donation import DonationCampaign, DonationEntry, DonationHistoryEntry
from models.ids import is_object_id, utcnow
from models.user import AuthContext
from services.auth_service import ensure_owner
from services.payments import StripePaymentGateway, to_minor_units

logger = logging.getLogger(__name__)


class DonationService:
    def __init__(
        self,
        campaigns: CampaignRepository,
        payment_gateway: StripePaymentGateway | None = None,
    ):
        self.campaigns = campaigns
        self.payment_gateway = payment_gateway

    def _load_campaign(self, campaign_id: str) -> DonationCampaign:
        if not is_object_id(campaign_id):
            raise InvalidInput("Invalid campaign id")
        campaign = self.campaigns.get_campaign(campaign_id)
        if campaign is None:
            raise NotFound("Campaign not found")
        return campaign

    def _ensure_valid_amount(self, amount: float) -> None:
        if amount is None or not math.isfinite(amount) or amount <= 0:
            raise InvalidInput("Amount must be a finite number greater than zero")

    def _ensure_accepting(self, campaign: DonationCampaign, amount: float) -> None:
        self._ensure_valid_amount(amount)
        if campaign.paused:
            raise Conflict("Campaign is paused")
        if campaign.is_closed(utcnow().date()):
            raise Conflict("Campaign has ended")

    def create_campaign(self, owner: AuthContext, **fields) -> DonationCampaign:
        fields.pop("owner_email", None)
        campaign = DonationCampaign(owner_email=owner.email, **fields)
        return self.campaigns.create_campaign(campaign)

    def get_campaign(self, campaign_id: str) -> DonationCampaign:
        return self._load_campaign(campaign_id)

    def record_direct(self, campaign_id: str, donor: AuthContext, amount: float) -> DonationEntry:
        """Pledge-style entry, no payment provider involved."""
        campaign = self._load_campaign(campaign_id)
        self._ensure_accepting(campaign, amount)

        entry = DonationEntry(donor_email=donor.email, donor_name=donor.name, amount=amount)
        if not self.campaigns.append_donation(campaign_id, entry):
            raise NotFound("Campaign not found")

        logger.info(
            f"Recorded pledge {entry.entry_id} of {amount} on campaign {campaign_id}",
            extra={"actor": donor.email, "campaign_id": campaign_id},
        )
        return entry

    def create_payment_intent(self, campaign_id: str, amount: float, donor: AuthContext) -> str:
        """Returns the client secret. The ledger is only written on confirmation."""
        if self.payment_gateway is None:
            raise Internal("Payment provider is not configured")

        campaign = self._load_campaign(campaign_id)
        self._ensure_accepting(campaign, amount)

        return self.payment_gateway.create_intent(
            amount_minor=to_minor_units(amount),
            metadata={
                "campaign_id": campaign_id,
                "donor_email": donor.email,
            },
        )

    def confirm_donation(
        self,
        campaign_id: str,
        donor: AuthContext,
        amount: float,
        payment_id: str,
    ) -> DonationEntry:
        if not payment_id or not payment_id.strip():
            raise InvalidInput("Payment id is required")

        # The provider already captured this payment, so a paused or ended
        # campaign still records it.
        self._ensure_valid_amount(amount)
        self._load_campaign(campaign_id)

        entry = DonationEntry(
            donor_email=donor.email,
            donor_name=donor.name,
            amount=amount,
            payment_id=payment_id.strip(),
        )
        if not self.campaigns.append_confirmed_donation(campaign_id, entry):
            if self.campaigns.get_campaign(campaign_id) is None:
                raise NotFound("Campaign not found")
            raise Conflict(f"Payment {entry.payment_id} was already recorded")

        logger.info(
            f"Recorded payment {entry.payment_id} of {amount} on campaign {campaign_id}",
            extra={"actor": donor.email, "campaign_id": campaign_id, "payment_id": entry.payment_id},
        )
        return entry

    def refund(self, campaign_id: str, donor: AuthContext) -> list[DonationEntry]:
        """Removes every entry of the caller on this campaign."""
        if not is_object_id(campaign_id):
            raise InvalidInput("Invalid campaign id")

        removed = self.campaigns.remove_donations_by_email(campaign_id, donor.email)
        if removed is None:
            raise NotFound("Campaign not found")
        if not removed:
            raise NoPriorDonation()

        logger.info(
            f"Refunded {len(removed)} donation(s) of {donor.email} on campaign {campaign_id}",
            extra={"actor": donor.email, "campaign_id": campaign_id},
        )
        return removed

    def list_campaign_donators(self, campaign_id: str) -> list[DonationEntry]:
        return self._load_campaign(campaign_id).donators

    def list_donor_history(self, donor: AuthContext) -> list[DonationHistoryEntry]:
        history = []
        for campaign in self.campaigns.list_campaigns():
            for entry in campaign.donators:
                if entry.donor_email == donor.email:
                    history.append(DonationHistoryEntry(
                        **entry.model_dump(),
                        campaign_id=campaign.campaign_id,
                        pet_name=campaign.pet_name,
                    ))
        return history

    def toggle_pause(self, campaign_id: str, owner: AuthContext) -> bool:
        campaign = self._load_campaign(campaign_id)
        ensure_owner(owner, campaign.owner_email)

        paused = not campaign.paused
        if not self.campaigns.set_paused(campaign_id, expected=campaign.paused, paused=paused):
            raise Conflict("Campaign was modified concurrently, please retry")

        logger.info(f"Campaign {campaign_id} paused={paused}", extra={"actor": owner.email, "campaign_id": campaign_id})
        return paused
