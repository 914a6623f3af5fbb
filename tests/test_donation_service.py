from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from conftest import CAMPAIGN_OWNER_EMAIL, DONOR_EMAIL, future_date, make_context
from core.errors import Conflict, Forbidden, Internal, InvalidInput, NoPriorDonation, NotFound, Upstream
from data_access.campaigns import CampaignRepository
from models.donation import DonationCampaign
from models.ids import new_object_id
from services.donation_service import DonationService
from services.payments import StripePaymentGateway, to_minor_units


@pytest.fixture
def gateway():
    gateway = MagicMock(spec=StripePaymentGateway)
    gateway.create_intent.return_value = "pi_123_secret_456"
    return gateway


@pytest.fixture
def service(campaigns, gateway):
    return DonationService(campaigns, gateway)


@pytest.fixture
def campaign_owner():
    return make_context(CAMPAIGN_OWNER_EMAIL, "Carol")


@pytest.fixture
def donor():
    return make_context(DONOR_EMAIL, "Dana")


@pytest.fixture
def campaign(service, campaign_owner):
    return service.create_campaign(
        campaign_owner,
        pet_name="Biscuit",
        max_amount=500,
        last_date=future_date(),
    )


class TestRecordDirect:
    def test_appends_entry(self, service, campaign, donor):
        entry = service.record_direct(campaign.campaign_id, donor, 25)

        donators = service.list_campaign_donators(campaign.campaign_id)
        assert [d.entry_id for d in donators] == [entry.entry_id]
        assert donators[0].amount == 25
        assert donators[0].payment_id is None

    def test_missing_campaign(self, service, donor):
        with pytest.raises(NotFound):
            service.record_direct(new_object_id(), donor, 25)

    @pytest.mark.parametrize("amount", [0, -5, float("nan"), float("inf"), float("-inf")])
    def test_invalid_amount(self, service, campaign, donor, amount):
        with pytest.raises(InvalidInput):
            service.record_direct(campaign.campaign_id, donor, amount)

    def test_paused_campaign(self, service, campaign, campaign_owner, donor):
        service.toggle_pause(campaign.campaign_id, campaign_owner)
        with pytest.raises(Conflict):
            service.record_direct(campaign.campaign_id, donor, 25)

    def test_ended_campaign(self, service, campaign_owner, donor):
        ended = service.create_campaign(
            campaign_owner,
            pet_name="Rex",
            max_amount=100,
            last_date=date.today() - timedelta(days=2),
        )
        with pytest.raises(Conflict):
            service.record_direct(ended.campaign_id, donor, 25)


class TestPaymentIntent:
    def test_converts_to_minor_units_with_metadata(self, service, campaign, donor, gateway):
        secret = service.create_payment_intent(campaign.campaign_id, 12.345, donor)

        assert secret == "pi_123_secret_456"
        gateway.create_intent.assert_called_once_with(
            amount_minor=1235,
            metadata={"campaign_id": campaign.campaign_id, "donor_email": DONOR_EMAIL},
        )
        assert service.list_campaign_donators(campaign.campaign_id) == []

    def test_missing_campaign(self, service, donor, gateway):
        with pytest.raises(NotFound):
            service.create_payment_intent(new_object_id(), 10, donor)
        gateway.create_intent.assert_not_called()

    def test_provider_failure_is_upstream(self, service, campaign, donor, gateway):
        gateway.create_intent.side_effect = Upstream("card network down")
        with pytest.raises(Upstream):
            service.create_payment_intent(campaign.campaign_id, 10, donor)

    @pytest.mark.parametrize("amount", [float("nan"), float("inf")])
    def test_non_finite_amount(self, service, campaign, donor, gateway, amount):
        with pytest.raises(InvalidInput):
            service.create_payment_intent(campaign.campaign_id, amount, donor)
        gateway.create_intent.assert_not_called()

    def test_without_gateway(self, campaigns, campaign, donor):
        with pytest.raises(Internal):
            DonationService(campaigns).create_payment_intent(campaign.campaign_id, 10, donor)

    @pytest.mark.parametrize("amount, expected", [(50, 5000), (0.5, 50), (19.99, 1999), (0.005, 1)])
    def test_minor_units(self, amount, expected):
        assert to_minor_units(amount) == expected


class TestConfirmDonation:
    def test_appends_entry_with_payment_id(self, service, campaign, donor):
        service.confirm_donation(campaign.campaign_id, donor, 50, "pay_1")

        donators = service.list_campaign_donators(campaign.campaign_id)
        assert [(d.donor_email, d.amount, d.payment_id) for d in donators] == [(DONOR_EMAIL, 50, "pay_1")]

    def test_replayed_payment_id_is_rejected(self, service, campaign, donor):
        service.confirm_donation(campaign.campaign_id, donor, 50, "pay_1")

        with pytest.raises(Conflict):
            service.confirm_donation(campaign.campaign_id, donor, 50, "pay_1")

        assert len(service.list_campaign_donators(campaign.campaign_id)) == 1

    def test_missing_campaign(self, service, donor):
        with pytest.raises(NotFound):
            service.confirm_donation(new_object_id(), donor, 50, "pay_1")

    def test_missing_payment_id(self, service, campaign, donor):
        with pytest.raises(InvalidInput):
            service.confirm_donation(campaign.campaign_id, donor, 50, " ")

    @pytest.mark.parametrize("amount", [0, float("nan"), float("inf")])
    def test_invalid_amount(self, service, campaign, donor, amount):
        with pytest.raises(InvalidInput):
            service.confirm_donation(campaign.campaign_id, donor, amount, "pay_1")
        assert service.list_campaign_donators(campaign.campaign_id) == []

    def test_paused_campaign_still_records(self, service, campaign, campaign_owner, donor):
        service.toggle_pause(campaign.campaign_id, campaign_owner)

        entry = service.confirm_donation(campaign.campaign_id, donor, 50, "pay_1")

        assert [d.payment_id for d in service.list_campaign_donators(campaign.campaign_id)] == [entry.payment_id]

    def test_ended_campaign_still_records(self, service, campaign_owner, donor):
        ended = service.create_campaign(
            campaign_owner,
            pet_name="Rex",
            max_amount=100,
            last_date=date.today() - timedelta(days=2),
        )

        service.confirm_donation(ended.campaign_id, donor, 20, "pay_2")

        assert [d.amount for d in service.list_campaign_donators(ended.campaign_id)] == [20]


class TestRefund:
    def test_refund_then_refund_again(self, service, campaign, donor):
        service.confirm_donation(campaign.campaign_id, donor, 50, "pay_1")

        removed = service.refund(campaign.campaign_id, donor)

        assert [e.payment_id for e in removed] == ["pay_1"]
        assert service.list_campaign_donators(campaign.campaign_id) == []
        with pytest.raises(NoPriorDonation):
            service.refund(campaign.campaign_id, donor)

    def test_removes_every_entry_of_donor_and_no_others(self, service, campaign, donor):
        other = make_context("erin@pawlume.org", "Erin")
        service.confirm_donation(campaign.campaign_id, donor, 10, "pay_1")
        kept = service.confirm_donation(campaign.campaign_id, other, 20, "pay_2")
        service.record_direct(campaign.campaign_id, donor, 30)

        removed = service.refund(campaign.campaign_id, donor)

        assert sorted(e.amount for e in removed) == [10, 30]
        donators = service.list_campaign_donators(campaign.campaign_id)
        assert [d.entry_id for d in donators] == [kept.entry_id]

    def test_missing_campaign(self, service, donor):
        with pytest.raises(NotFound):
            service.refund(new_object_id(), donor)

    def test_no_donation(self, service, campaign, donor):
        with pytest.raises(NoPriorDonation) as exc_info:
            service.refund(campaign.campaign_id, donor)
        assert "not donated" in exc_info.value.detail

    def test_refunded_payment_id_still_cannot_be_replayed(self, service, campaign, donor):
        service.confirm_donation(campaign.campaign_id, donor, 50, "pay_1")
        service.refund(campaign.campaign_id, donor)

        with pytest.raises(Conflict):
            service.confirm_donation(campaign.campaign_id, donor, 50, "pay_1")


class TestStaleRefund:
    def test_retries_when_campaign_changed(self):
        table = MagicMock()
        table.get_item.return_value = {"Item": {
            "PK": "CAMPAIGN#x",
            "SK": "META",
            "version": 3,
            "donators": [{"entry_id": "e1", "donor_email": DONOR_EMAIL, "amount": 5}],
        }}
        conditional_failure = ClientError(
            {"Error": {"Code": "ConditionalCheckFailedException", "Message": "stale"}},
            "UpdateItem",
        )
        table.update_item.side_effect = [conditional_failure, {}]

        removed = CampaignRepository(table).remove_donations_by_email("x", DONOR_EMAIL)

        assert [e.entry_id for e in removed] == ["e1"]
        assert table.update_item.call_count == 2


class TestDonorHistory:
    def test_flattens_entries_across_campaigns(self, service, campaign, campaign_owner, donor):
        second = service.create_campaign(
            campaign_owner,
            pet_name="Mittens",
            max_amount=200,
            last_date=future_date(),
        )
        service.confirm_donation(campaign.campaign_id, donor, 10, "pay_1")
        service.confirm_donation(second.campaign_id, donor, 15, "pay_2")
        service.record_direct(second.campaign_id, make_context("erin@pawlume.org"), 99)

        history = service.list_donor_history(donor)

        assert sorted((h.campaign_id, h.amount) for h in history) == sorted([
            (campaign.campaign_id, 10),
            (second.campaign_id, 15),
        ])
        assert all(h.donor_email == DONOR_EMAIL for h in history)

    def test_empty_history(self, service, campaign, donor):
        assert service.list_donor_history(donor) == []


class TestTogglePause:
    def test_owner_flips_flag(self, service, campaign, campaign_owner):
        assert service.toggle_pause(campaign.campaign_id, campaign_owner) is True
        assert service.get_campaign(campaign.campaign_id).paused is True
        assert service.toggle_pause(campaign.campaign_id, campaign_owner) is False

    def test_non_owner_forbidden(self, service, campaign, donor):
        with pytest.raises(Forbidden):
            service.toggle_pause(campaign.campaign_id, donor)
        assert service.get_campaign(campaign.campaign_id).paused is False

    def test_missing_campaign(self, service, campaign_owner):
        with pytest.raises(NotFound):
            service.toggle_pause(new_object_id(), campaign_owner)


def test_campaign_owner_comes_from_caller(service, campaign_owner):
    campaign = service.create_campaign(
        campaign_owner,
        owner_email="mallory@pawlume.org",
        pet_name="Rex",
        max_amount=100,
        last_date=future_date(),
    )
    assert isinstance(campaign, DonationCampaign)
    assert campaign.owner_email == CAMPAIGN_OWNER_EMAIL
