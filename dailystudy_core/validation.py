"""
Input validation schemas using Pydantic v2
Validates submission payloads before they reach the submission rules
"""

import logging
import re
from typing import Optional, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

# GitHub handle: alphanumerics and single inner hyphens, max 39 chars
GITHUB_USERNAME_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9])){0,38}$")

# Anything outside letters, digits, Hangul syllables, '-' and '_' becomes '_' in file names
UNSAFE_TITLE_CHARS = re.compile(r"[^a-zA-Z0-9가-힣\-_]")

MAX_CODE_LENGTH = 100_000


class ValidatedSubmission(BaseModel):
    """Submission request as sent by the submit form"""

    githubUsername: str = Field(
        ..., min_length=1, max_length=39, description="Submitter's GitHub handle"
    )
    problemId: str = Field(..., min_length=1, max_length=64, description="Problem ID")
    code: str = Field(
        ..., min_length=1, max_length=MAX_CODE_LENGTH, description="Solution (markdown)"
    )

    # FREE problems only: the participant names the problem they solved
    customTitle: Optional[str] = Field(None, max_length=200, description="Custom problem title")
    customUrl: Optional[str] = Field(None, max_length=2048, description="Custom problem URL")

    @field_validator("githubUsername")
    @classmethod
    def validate_github_username(cls, v: str) -> str:
        """Validate handle follows GitHub naming rules"""
        v = v.strip()
        if not GITHUB_USERNAME_RE.match(v):
            raise ValueError(f"githubUsername is not a valid GitHub handle: {v}")
        return v

    @field_validator("problemId")
    @classmethod
    def validate_problem_id(cls, v: str) -> str:
        v = v.strip()
        if len(v) == 0:
            raise ValueError("problemId cannot be empty")
        return v

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        """Reject whitespace-only code and null bytes"""
        if not v.strip():
            raise ValueError("code cannot be empty")
        if "\0" in v:
            raise ValueError("code contains null bytes")
        return v

    @field_validator("customTitle")
    @classmethod
    def validate_custom_title(cls, v: Optional[str]) -> Optional[str]:
        """Blank titles count as missing"""
        if v is None:
            return v
        v = v.strip()
        return v or None

    @field_validator("customUrl")
    @classmethod
    def validate_custom_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            return None
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("customUrl must be an http(s) URL")
        return v

    @model_validator(mode="after")
    def validate_custom_fields(self) -> Self:
        """A custom URL without a custom title cannot be displayed"""
        if self.customUrl is not None and self.customTitle is None:
            raise ValueError("customUrl requires customTitle")
        return self

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class InputSanitizer:
    """Utility class for input sanitization"""

    @staticmethod
    def sanitize_title(title: str) -> str:
        """Make a problem title safe for a repository file name - preserve Hangul"""
        return UNSAFE_TITLE_CHARS.sub("_", title)

    @staticmethod
    def normalize_email(email: Optional[str]) -> Optional[str]:
        if email is None:
            return None
        email = email.strip().lower()
        return email or None

    @staticmethod
    def validate_and_sanitize_submission(payload: dict) -> ValidatedSubmission:
        """
        Validate submission dictionary

        Returns:
            ValidatedSubmission: Validated submission object

        Raises:
            ValueError: If validation fails
        """
        try:
            return ValidatedSubmission(**payload)
        except Exception as e:
            logger.warning(f"Submission validation failed: {e}")
            raise ValueError(f"Invalid submission: {str(e)}")


# ==================== EXPORT ====================

__all__ = [
    "ValidatedSubmission",
    "InputSanitizer",
]
