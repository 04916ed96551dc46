"""Configuration for Landscape Deploy."""

import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from landscape_deploy.exceptions import MissingEnvironmentError

# Variables that must be set before anything talks to AWS
REQUIRED_ENV_VARS = ("AWS_REGION", "AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY")

# Number of files uploaded concurrently
DEFAULT_UPLOAD_CONCURRENCY = 20


class AWSConfig(BaseModel):
    """AWS credentials and region."""

    model_config = ConfigDict(validate_assignment=True)

    profile: Optional[str] = None
    region: str = "us-east-1"
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None


class S3Config(BaseModel):
    """Target bucket settings."""

    model_config = ConfigDict(validate_assignment=True)

    bucket_name: Optional[str] = None
    upload_concurrency: int = Field(DEFAULT_UPLOAD_CONCURRENCY, ge=1)


class Config(BaseModel):
    """Main configuration for Landscape Deploy."""

    model_config = ConfigDict(validate_assignment=True)

    aws: AWSConfig = Field(default_factory=AWSConfig)
    s3: S3Config = Field(default_factory=S3Config)
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        config = cls()

        if os.getenv("AWS_PROFILE"):
            config.aws.profile = os.getenv("AWS_PROFILE")
        if os.getenv("AWS_REGION"):
            config.aws.region = os.environ["AWS_REGION"]
        config.aws.access_key_id = os.getenv("AWS_ACCESS_KEY_ID") or None
        config.aws.secret_access_key = os.getenv("AWS_SECRET_ACCESS_KEY") or None

        if os.getenv("LANDSCAPE_DEPLOY_BUCKET"):
            config.s3.bucket_name = os.getenv("LANDSCAPE_DEPLOY_BUCKET")
        if os.getenv("LANDSCAPE_DEPLOY_CONCURRENCY"):
            config.s3.upload_concurrency = int(os.environ["LANDSCAPE_DEPLOY_CONCURRENCY"])

        config.verbose = os.getenv("LANDSCAPE_DEPLOY_VERBOSE", "").lower() in ("1", "true", "yes")
        return config

    def get_aws_session_kwargs(self) -> Dict[str, Any]:
        """Get keyword arguments for boto3.Session."""
        kwargs: Dict[str, Any] = {"region_name": self.aws.region}
        if self.aws.profile:
            kwargs["profile_name"] = self.aws.profile
        return kwargs

    def get_s3_client_kwargs(self) -> Dict[str, Any]:
        """Get keyword arguments for creating the S3 client."""
        kwargs: Dict[str, Any] = {"region_name": self.aws.region}
        if self.aws.access_key_id and self.aws.secret_access_key:
            kwargs["aws_access_key_id"] = self.aws.access_key_id
            kwargs["aws_secret_access_key"] = self.aws.secret_access_key
        return kwargs


def check_env_vars(environ: Optional[Mapping[str, str]] = None) -> None:
    """Check that the required environment variables have been provided.

    Raises:
        MissingEnvironmentError: naming the first variable missing or empty
    """
    if environ is None:
        environ = os.environ
    for var in REQUIRED_ENV_VARS:
        if not environ.get(var):
            raise MissingEnvironmentError(var)
