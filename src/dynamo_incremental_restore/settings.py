"""Service settings for dynamo-incremental-restore.

All settings use the DYNAMO_RESTORE_ environment prefix and cover:
- The S3 bucket and prefix holding the incremental backup's versioned objects
- AWS connectivity (region, optional S3-compatible endpoint)
- Restore fan-out limits and the pre-creation policy
- Logging output
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for dynamo-incremental-restore.

    Environment variable prefix: DYNAMO_RESTORE_
    """

    service_name: str = "dynamo-incremental-restore"

    # -------------------------------------------------------------------------
    # Backup location: versioned S3 bucket written by the incremental backup
    # -------------------------------------------------------------------------

    s3_bucket: str = Field(
        default="",
        description="Versioned S3 bucket holding the backup. "
        "Leave empty to serve from the in-memory store (local development only).",
    )
    s3_prefix: str = Field(
        default="",
        description="Object key prefix of the backed-up table. "
        "Stripped from object keys to obtain the logical record key.",
    )

    # -------------------------------------------------------------------------
    # AWS connectivity
    # -------------------------------------------------------------------------

    aws_region: str = Field(
        default="us-east-1",
        description="AWS region of the backup bucket.",
    )
    s3_endpoint_url: str = Field(
        default="",
        description="S3-compatible endpoint URL. Leave empty for AWS S3.",
    )

    # -------------------------------------------------------------------------
    # Restore behaviour
    # -------------------------------------------------------------------------

    max_concurrent_fetches: int = Field(
        default=10,
        ge=1,
        description="Maximum number of body fetches in flight at once. "
        "Keep below the bucket's request-rate limits.",
    )
    pre_creation_policy: Literal["omit", "tombstone"] = Field(
        default="omit",
        description="How keys whose first revision is later than the cutoff are reported: "
        "'omit' leaves them out, 'tombstone' reports them as deleted.",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    log_level: str = Field(default="INFO", description="Minimum log level.")
    log_json: bool = Field(default=False, description="Emit JSON log lines.")

    model_config = SettingsConfigDict(env_prefix="DYNAMO_RESTORE_")
