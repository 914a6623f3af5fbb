import logging
import os
from functools import lru_cache
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):

    STRIPE_PUBLISHABLE_KEY: Optional[str] = None
    STRIPE_SECRET_KEY: Optional[str] = None
    PAYMENT_CURRENCY: str = "usd"

    AWS_PROFILE: Optional[str] = None
    AWS_REGION: str = "eu-central-1"
    DYNAMODB_TABLE_NAME: str
    DYNAMODB_ENDPOINT_URL: Optional[str] = None
    COGNITO_USER_POOL_ID: str
    COGNITO_USER_POOL_CLIENT_ID: str

    DEFAULT_ROLE: str = "user"
    ROOT_PATH: str = ""
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def cognito_issuer(self) -> str:
        return f"https://cognito-idp.{self.AWS_REGION}.amazonaws.com/{self.COGNITO_USER_POOL_ID}"

    @property
    def cognito_jwks_url(self) -> str:
        return f"{self.cognito_issuer}/.well-known/jwks.json"


def _get_ssm_parameter(parameter_name: str, region: str = "eu-central-1") -> Optional[str]:
    """Fetch parameter from SSM Parameter Store"""
    try:
        ssm_client = boto3.client('ssm', region_name=region)
        response = ssm_client.get_parameter(
            Name=parameter_name,
            WithDecryption=True
        )
        return response['Parameter']['Value']
    except (BotoCoreError, ClientError) as e:
        logger.warning(f"Could not fetch SSM parameter {parameter_name}: {e}")
        return None


@lru_cache()
def get_settings() -> Settings:
    """Get settings, fetching secrets from SSM if not in environment variables"""
    settings = Settings()

    if not settings.STRIPE_SECRET_KEY:
        region = settings.AWS_REGION or os.getenv('AWS_REGION', 'eu-central-1')
        settings.STRIPE_SECRET_KEY = _get_ssm_parameter("/pawlume/STRIPE_SECRET_KEY", region)

    return settings
