"""
Object storage settings (S3 or any S3-compatible endpoint such as MinIO).
"""
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings


class StorageSettings(BaseSettings):
    """
    Defines credentials and location of the bucket holding uploaded files.

    When AWS_ENDPOINT is empty the client talks to AWS S3 in AWS_REGION.
    """
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: SecretStr = SecretStr("")
    AWS_BUCKET_NAME: str = "inkwell-uploads"
    AWS_ENDPOINT: str = ""
    AWS_SECURE: bool = True
    AWS_PUBLIC_URL: str = ""

    AVATAR_MAX_BYTES: int = Field(ge=1, default=5 * 1024 * 1024)
