"""Season status derivation shared by submission checks and listings."""
from __future__ import annotations

from typing import Literal

SeasonStatus = Literal["UPCOMING", "ACTIVE", "COMPLETED"]

STATUS_LABELS: dict[str, str] = {
    "UPCOMING": "Upcoming",
    "ACTIVE": "In progress",
    "COMPLETED": "Finished",
}

SEASON_STATUS_OPTIONS: tuple[dict[str, str], ...] = tuple(
    {"value": key, "label": label} for key, label in STATUS_LABELS.items()
)


def season_status_key(status: str | None = None, is_active: bool | None = None) -> SeasonStatus:
    """Effective status of a season.

    COMPLETED always wins; the legacy ``is_active`` flag still promotes a
    season to ACTIVE when no explicit status says otherwise.
    """
    if status == "COMPLETED":
        return "COMPLETED"
    if is_active or status == "ACTIVE":
        return "ACTIVE"
    return "UPCOMING"


def season_status_label(status: str | None = None, is_active: bool | None = None) -> str:
    return STATUS_LABELS[season_status_key(status, is_active)]
