"""
Study settings using Pydantic v2
Loaded once by the host application and passed to the service layer
"""

import logging
import os
from typing import Dict, Iterable, List, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .dates import DEFAULT_TIMEZONE
from .refund import DROP_THRESHOLD, REFUND_DISTRIBUTION
from .validation import InputSanitizer

logger = logging.getLogger(__name__)


def _normalize_emails(values: Iterable[Optional[str]]) -> List[str]:
    normalized = (InputSanitizer.normalize_email(v) for v in values)
    return [e for e in normalized if e]


def parse_email_list(value: Optional[str]) -> List[str]:
    """Split a comma separated e-mail list, lowercased, empties removed."""
    return _normalize_emails((value or "").split(","))


class StudySettings(BaseModel):
    """Runtime configuration for refund reports and submission checks"""

    admin_emails: List[str] = Field(
        default_factory=list, description="E-mails allowed into the admin area"
    )
    timezone: str = Field(
        DEFAULT_TIMEZONE, description="IANA zone that defines the study day"
    )
    drop_threshold: int = Field(
        DROP_THRESHOLD, ge=1, le=365, description="Missed problems before an ACTIVE participant drops"
    )
    refund_distribution: Dict[int, float] = Field(
        default_factory=lambda: dict(REFUND_DISTRIBUTION),
        description="Rank -> percentage of the dropped pool",
    )

    @field_validator("admin_emails")
    @classmethod
    def normalize_admin_emails(cls, v: List[str]) -> List[str]:
        return _normalize_emails(v)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        v = v.strip()
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone: {v}")
        return v

    @field_validator("refund_distribution")
    @classmethod
    def validate_distribution(cls, v: Dict[int, float]) -> Dict[int, float]:
        """Ranks start at 1, shares are non-negative and never exceed the pool"""
        for rank, share in v.items():
            if rank < 1:
                raise ValueError(f"distribution rank must be >= 1, got {rank}")
            if share < 0:
                raise ValueError(f"distribution share for rank {rank} must be >= 0")
        if sum(v.values()) > 100:
            raise ValueError("distribution shares cannot exceed 100 percent")
        return v

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StudySettings":
        """
        Build settings from environment variables

        ADMIN_EMAILS           comma separated admin e-mails
        STUDY_TIMEZONE         IANA zone name (default Asia/Seoul)
        REFUND_DROP_THRESHOLD  integer missed-count threshold (default 3)
        """
        env = os.environ if environ is None else environ
        values: Dict[str, object] = {"admin_emails": parse_email_list(env.get("ADMIN_EMAILS"))}
        if env.get("STUDY_TIMEZONE"):
            values["timezone"] = env["STUDY_TIMEZONE"]
        if env.get("REFUND_DROP_THRESHOLD"):
            values["drop_threshold"] = env["REFUND_DROP_THRESHOLD"]
        settings = cls(**values)
        logger.debug(
            f"Loaded settings: admins={len(settings.admin_emails)} tz={settings.timezone} "
            f"drop_threshold={settings.drop_threshold}"
        )
        return settings

    model_config = ConfigDict(frozen=True)


__all__ = ["StudySettings", "parse_email_list"]
