"""Type definitions for the Capacities tool adapters."""

from typing import List, Optional, Dict, Any
from dataclasses import dataclass
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator


MAX_MARKDOWN_LENGTH = 200_000
MAX_TITLE_LENGTH = 500
MAX_DESCRIPTION_LENGTH = 1_000
MAX_TAGS = 30
SPACE_ID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"


class CapacitiesError(Exception):
    """Base exception for the server."""
    pass


class ConfigError(CapacitiesError):
    """Raised when process configuration is missing or malformed."""
    pass


class ToolArgumentError(CapacitiesError):
    """Raised when tool arguments do not match the declared shape."""
    pass


class UnknownToolError(CapacitiesError):
    """Raised when a call names a tool that is not registered."""
    pass


class CapacitiesAPIError(CapacitiesError):
    """Raised when the Capacities API answers with a non-success status."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"Capacities API error {status}: {body}")


@dataclass(frozen=True)
class OutboundCall:
    """One HTTP request to the Capacities API."""
    method: str
    path: str
    body: Optional[Dict[str, Any]] = None
    params: Optional[Dict[str, str]] = None


class SpaceArgs(BaseModel):
    """Arguments shared by tools that act inside a single space."""
    spaceId: Optional[str] = Field(
        default=None,
        pattern=SPACE_ID_PATTERN,
        json_schema_extra={"format": "uuid"},
        description="Space ID (uses default if omitted)"
    )

    @property
    def space_id(self) -> Optional[str]:
        return self.spaceId


class SaveToDailyNoteArgs(SpaceArgs):
    text: str = Field(
        ...,
        min_length=1,
        max_length=MAX_MARKDOWN_LENGTH,
        description="Markdown text to save to today's Daily Note"
    )
    noTimestamp: bool = Field(default=False, description="Skip timestamp prefix")


class SaveWeblinkArgs(SpaceArgs):
    url: str = Field(..., description="URL to save")
    title: Optional[str] = Field(
        default=None, max_length=MAX_TITLE_LENGTH, description="Custom title override"
    )
    description: Optional[str] = Field(
        default=None, max_length=MAX_DESCRIPTION_LENGTH, description="Custom description override"
    )
    notes: Optional[str] = Field(
        default=None, max_length=MAX_MARKDOWN_LENGTH, description="Markdown notes to attach"
    )
    tags: Optional[List[str]] = Field(
        default=None, max_length=MAX_TAGS, description="Tag names to apply"
    )

    @field_validator('url')
    @classmethod
    def _check_url(cls, value: str) -> str:
        # Kept verbatim: the API receives exactly what the caller sent.
        parsed = urlparse(value)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"Invalid url: {value}")
        return value


class GetSpacesArgs(BaseModel):
    pass


class LookupArgs(SpaceArgs):
    searchTerm: str = Field(..., min_length=1, description="Title to search for")


__all__ = [
    'CapacitiesError',
    'ConfigError',
    'ToolArgumentError',
    'UnknownToolError',
    'CapacitiesAPIError',
    'OutboundCall',
    'SpaceArgs',
    'SaveToDailyNoteArgs',
    'SaveWeblinkArgs',
    'GetSpacesArgs',
    'LookupArgs'
]
