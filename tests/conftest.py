import os
from datetime import date, timedelta

# Settings are read on import of the app, so the environment goes first.
os.environ.setdefault("DYNAMODB_TABLE_NAME", "pawlume-test")
os.environ.setdefault("COGNITO_USER_POOL_ID", "eu-central-1_testpool")
os.environ.setdefault("COGNITO_USER_POOL_CLIENT_ID", "test-client-id")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("AWS_REGION", "eu-central-1")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "eu-central-1"

import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from core.errors import Unauthenticated
from data_access.adoptions import AdoptionRepository
from data_access.campaigns import CampaignRepository
from data_access.dynamodb import UserRepository, create_table
from data_access.pets import PetRepository
from models.pet import Pet
from models.user import AuthContext, VerifiedSubject

OWNER_EMAIL = "alice@pawlume.org"
REQUESTER_EMAIL = "bob@pawlume.org"
DONOR_EMAIL = "dana@pawlume.org"
CAMPAIGN_OWNER_EMAIL = "carol@pawlume.org"


def make_context(email: str, name: str | None = None, role: str = "user") -> AuthContext:
    return AuthContext(subject_id=f"sub-{email}", email=email, role=role, name=name)


def future_date(days: int = 30) -> date:
    return date.today() + timedelta(days=days)


class FakeVerifier:
    """Maps opaque tokens straight to subjects."""

    def __init__(self, subjects: dict[str, VerifiedSubject]):
        self.subjects = subjects

    def verify(self, token: str) -> VerifiedSubject:
        if token not in self.subjects:
            raise Unauthenticated()
        return self.subjects[token]


TOKENS = {
    "alice-token": VerifiedSubject(subject_id="sub-alice", email=OWNER_EMAIL, name="Alice"),
    "bob-token": VerifiedSubject(subject_id="sub-bob", email=REQUESTER_EMAIL, name="Bob"),
    "carol-token": VerifiedSubject(subject_id="sub-carol", email=CAMPAIGN_OWNER_EMAIL, name="Carol"),
    "dana-token": VerifiedSubject(subject_id="sub-dana", email=DONOR_EMAIL, name="Dana"),
}


def bearer(name: str) -> dict:
    return {"Authorization": f"Bearer {name}-token"}


@pytest.fixture
def table():
    with mock_aws():
        resource = boto3.resource("dynamodb", region_name="eu-central-1")
        yield create_table(resource, "pawlume-test")


@pytest.fixture
def users(table):
    return UserRepository(table)


@pytest.fixture
def pets(table):
    return PetRepository(table)


@pytest.fixture
def adoptions(table):
    return AdoptionRepository(table)


@pytest.fixture
def campaigns(table):
    return CampaignRepository(table)


@pytest.fixture
def owner():
    return make_context(OWNER_EMAIL, "Alice")


@pytest.fixture
def requester():
    return make_context(REQUESTER_EMAIL, "Bob")


@pytest.fixture
def pet(pets):
    return pets.create_pet(Pet(owner_email=OWNER_EMAIL, name="Biscuit", category="dog", image="biscuit.png"))


@pytest.fixture
def client(table):
    from api.main import app
    from core.dependencies import get_dynamo_table, get_identity_verifier

    app.dependency_overrides[get_dynamo_table] = lambda: table
    app.dependency_overrides[get_identity_verifier] = lambda: FakeVerifier(TOKENS)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
