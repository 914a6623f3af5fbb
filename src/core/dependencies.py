import boto3
import jwt
import stripe
from fastapi import Depends
from functools import lru_cache

from core.config import get_settings
from core.errors import Internal
from data_access.adoptions import AdoptionRepository
from data_access.campaigns import CampaignRepository
from data_access.dynamodb import UserRepository
from data_access.pets import PetRepository
from services.adoption_service import AdoptionService
from services.auth_service import AuthGate, RoleResolver
from services.donation_service import DonationService
from services.identity import CognitoIdentityVerifier
from services.payments import StripePaymentGateway
from services.pet_service import PetService
from services.user_service import UserService


@lru_cache()
def get_boto_session() -> boto3.Session:
    settings = get_settings()
    return boto3.Session(
        region_name=settings.AWS_REGION,
        profile_name=settings.AWS_PROFILE
    )


@lru_cache()
def get_dynamo_table():
    settings = get_settings()
    session = get_boto_session()
    dynamo_resource = session.resource('dynamodb', endpoint_url=settings.DYNAMODB_ENDPOINT_URL)
    return dynamo_resource.Table(settings.DYNAMODB_TABLE_NAME)


def get_user_repository(table=Depends(get_dynamo_table)) -> UserRepository:
    return UserRepository(table)


def get_pet_repository(table=Depends(get_dynamo_table)) -> PetRepository:
    return PetRepository(table)


def get_adoption_repository(table=Depends(get_dynamo_table)) -> AdoptionRepository:
    return AdoptionRepository(table)


def get_campaign_repository(table=Depends(get_dynamo_table)) -> CampaignRepository:
    return CampaignRepository(table)


@lru_cache()
def get_identity_verifier() -> CognitoIdentityVerifier:
    settings = get_settings()
    # PyJWKClient caches the pool's signing keys between requests.
    return CognitoIdentityVerifier(
        jwks_client=jwt.PyJWKClient(settings.cognito_jwks_url),
        issuer=settings.cognito_issuer,
        audience=settings.COGNITO_USER_POOL_CLIENT_ID
    )


def get_auth_gate(
    verifier=Depends(get_identity_verifier),
    users: UserRepository = Depends(get_user_repository)
) -> AuthGate:
    # Roles are resolved on every request, never cached.
    return AuthGate(verifier, RoleResolver(users, default_role=get_settings().DEFAULT_ROLE))


@lru_cache()
def get_payment_gateway() -> StripePaymentGateway:
    settings = get_settings()
    if not settings.STRIPE_SECRET_KEY:
        raise Internal("STRIPE_SECRET_KEY is required. Set it in SSM Parameter Store as /pawlume/STRIPE_SECRET_KEY or as an environment variable.")

    stripe.api_key = settings.STRIPE_SECRET_KEY
    return StripePaymentGateway(currency=settings.PAYMENT_CURRENCY)


def get_user_service(users: UserRepository = Depends(get_user_repository)) -> UserService:
    return UserService(users)


def get_pet_service(pets: PetRepository = Depends(get_pet_repository)) -> PetService:
    return PetService(pets)


def get_adoption_service(
    adoptions: AdoptionRepository = Depends(get_adoption_repository),
    pets: PetRepository = Depends(get_pet_repository)
) -> AdoptionService:
    return AdoptionService(adoptions, pets)


def get_donation_service(
    campaigns: CampaignRepository = Depends(get_campaign_repository)
) -> DonationService:
    return DonationService(campaigns)


def get_payment_donation_service(
    campaigns: CampaignRepository = Depends(get_campaign_repository),
    payment_gateway: StripePaymentGateway = Depends(get_payment_gateway)
) -> DonationService:
    # Only the payment intent route needs Stripe configured.
    return DonationService(campaigns, payment_gateway)
