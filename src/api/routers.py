from fastapi import APIRouter, Depends, status
from typing import Optional

from api.schemas import (
    AdoptionCreateRequest,
    AdoptionCreatedResponse,
    CampaignCreateRequest,
    CampaignCreatedResponse,
    CurrentUserResponse,
    DonationIntentRequest,
    DonationIntentResponse,
    PauseResponse,
    PetCreateRequest,
    PetCreatedResponse,
    PledgeRequest,
    RefundResponse,
    RegisterUserRequest,
    SaveDonationRequest,
    UserProfileResponse,
)
from api.security import get_current_user
from core.dependencies import (
    get_adoption_service,
    get_donation_service,
    get_payment_donation_service,
    get_pet_service,
    get_user_service,
)
from models.adoption import AdoptionRequest, ContactInfo
from models.donation import DonationCampaign, DonationEntry, DonationHistoryEntry
from models.pet import Pet
from models.user import AuthContext
from services.adoption_service import AdoptionService
from services.donation_service import DonationService
from services.pet_service import PetService
from services.user_service import UserService

router = APIRouter()


# Users

@router.post("/users", response_model=UserProfileResponse, status_code=status.HTTP_201_CREATED)
def register_user(
    body: RegisterUserRequest,
    user: AuthContext = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    return user_service.register(user, name=body.name)


@router.get("/users/me", response_model=CurrentUserResponse)
def read_current_user(user: AuthContext = Depends(get_current_user)):
    return user


# Pets

@router.get("/pets", response_model=list[Pet])
def list_pets(
    search: Optional[str] = None,
    category: Optional[str] = None,
    pet_service: PetService = Depends(get_pet_service)
):
    return pet_service.list_available_pets(search=search, category=category)


@router.post("/pets", response_model=PetCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_pet(
    body: PetCreateRequest,
    user: AuthContext = Depends(get_current_user),
    pet_service: PetService = Depends(get_pet_service)
):
    pet = pet_service.create_pet(user, **body.model_dump())
    return PetCreatedResponse(pet_id=pet.pet_id)


@router.get("/pets/{pet_id}", response_model=Pet)
def get_pet(pet_id: str, pet_service: PetService = Depends(get_pet_service)):
    return pet_service.get_pet(pet_id)


# Adoptions

@router.post("/adoptions", response_model=AdoptionCreatedResponse, status_code=status.HTTP_201_CREATED)
def submit_adoption(
    body: AdoptionCreateRequest,
    user: AuthContext = Depends(get_current_user),
    adoption_service: AdoptionService = Depends(get_adoption_service)
):
    request = adoption_service.submit(
        pet_id=body.pet_id,
        requester=user,
        contact=ContactInfo(phone=body.phone, address=body.address)
    )
    return AdoptionCreatedResponse(adoption_id=request.adoption_id)


@router.patch("/adoptions/accept/{adoption_id}", response_model=AdoptionRequest)
def accept_adoption(
    adoption_id: str,
    user: AuthContext = Depends(get_current_user),
    adoption_service: AdoptionService = Depends(get_adoption_service)
):
    return adoption_service.accept(adoption_id, user)


@router.patch("/adoptions/reject/{adoption_id}", response_model=AdoptionRequest)
def reject_adoption(
    adoption_id: str,
    user: AuthContext = Depends(get_current_user),
    adoption_service: AdoptionService = Depends(get_adoption_service)
):
    return adoption_service.reject(adoption_id, user)


@router.get("/adoptions/my-pets-requests", response_model=list[AdoptionRequest])
def list_my_pets_requests(
    user: AuthContext = Depends(get_current_user),
    adoption_service: AdoptionService = Depends(get_adoption_service)
):
    return adoption_service.list_owner_inbox(user)


@router.get("/adoptions/my-requests", response_model=list[AdoptionRequest])
def list_my_requests(
    user: AuthContext = Depends(get_current_user),
    adoption_service: AdoptionService = Depends(get_adoption_service)
):
    return adoption_service.list_my_requests(user)


# Donation campaigns

@router.post(
    "/donationCampaigns/create",
    response_model=CampaignCreatedResponse,
    status_code=status.HTTP_201_CREATED
)
def create_campaign(
    body: CampaignCreateRequest,
    user: AuthContext = Depends(get_current_user),
    donation_service: DonationService = Depends(get_donation_service)
):
    campaign = donation_service.create_campaign(user, **body.model_dump())
    return CampaignCreatedResponse(campaign_id=campaign.campaign_id)


@router.get("/donationCampaigns/{campaign_id}", response_model=DonationCampaign)
def get_campaign(
    campaign_id: str,
    donation_service: DonationService = Depends(get_donation_service)
):
    return donation_service.get_campaign(campaign_id)


@router.get("/donationCampaigns/{campaign_id}/donators", response_model=list[DonationEntry])
def list_campaign_donators(
    campaign_id: str,
    user: AuthContext = Depends(get_current_user),
    donation_service: DonationService = Depends(get_donation_service)
):
    return donation_service.list_campaign_donators(campaign_id)


@router.patch("/donationCampaigns/pause/{campaign_id}", response_model=PauseResponse)
def toggle_campaign_pause(
    campaign_id: str,
    user: AuthContext = Depends(get_current_user),
    donation_service: DonationService = Depends(get_donation_service)
):
    paused = donation_service.toggle_pause(campaign_id, user)
    return PauseResponse(campaign_id=campaign_id, paused=paused)


@router.post("/donationCampaigns/{campaign_id}/pledge", response_model=DonationEntry)
def pledge_donation(
    campaign_id: str,
    body: PledgeRequest,
    user: AuthContext = Depends(get_current_user),
    donation_service: DonationService = Depends(get_donation_service)
):
    return donation_service.record_direct(campaign_id, user, body.amount)


# Donations

@router.post("/create-payment-intent", response_model=DonationIntentResponse)
def create_payment_intent(
    body: DonationIntentRequest,
    user: AuthContext = Depends(get_current_user),
    donation_service: DonationService = Depends(get_payment_donation_service)
):
    client_secret = donation_service.create_payment_intent(
        campaign_id=body.campaign_id,
        amount=body.amount,
        donor=user
    )
    return DonationIntentResponse(client_secret=client_secret)


@router.post("/save-donation", response_model=DonationEntry)
def save_donation(
    body: SaveDonationRequest,
    user: AuthContext = Depends(get_current_user),
    donation_service: DonationService = Depends(get_donation_service)
):
    return donation_service.confirm_donation(
        campaign_id=body.campaign_id,
        donor=user,
        amount=body.amount,
        payment_id=body.payment_id
    )


@router.delete("/donations/refund/{campaign_id}", response_model=RefundResponse)
def refund_donation(
    campaign_id: str,
    user: AuthContext = Depends(get_current_user),
    donation_service: DonationService = Depends(get_donation_service)
):
    removed = donation_service.refund(campaign_id, user)
    return RefundResponse(campaign_id=campaign_id, removed=removed)


@router.get("/donations/my-donations", response_model=list[DonationHistoryEntry])
def list_my_donations(
    user: AuthContext = Depends(get_current_user),
    donation_service: DonationService = Depends(get_donation_service)
):
    return donation_service.list_donor_history(user)
