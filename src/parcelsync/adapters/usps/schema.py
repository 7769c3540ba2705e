"""Pydantic models describing USPS TrackV2 responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class UspsBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class TrackDetailPayload(UspsBaseModel):
    """Structured ``TrackSummary``/``TrackDetail`` element."""

    event: str = Field(alias="Event")
    event_code: str | None = Field(default=None, alias="EventCode")
    event_time: str | None = Field(default=None, alias="EventTime")
    event_date: str | None = Field(default=None, alias="EventDate")
    event_city: str | None = Field(default=None, alias="EventCity")
    event_state: str | None = Field(default=None, alias="EventState")
    event_zip: str | None = Field(default=None, alias="EventZIPCode")
    event_country: str | None = Field(default=None, alias="EventCountry")

    _normalize_blank = field_validator("*", mode="before")(_blank_to_none)

    @property
    def location(self) -> str | None:
        parts = [part for part in (self.event_city, self.event_state, self.event_zip) if part]
        if not parts and self.event_country:
            return self.event_country
        return " ".join(parts) or None


class ErrorPayload(UspsBaseModel):
    number: str | None = Field(default=None, alias="Number")
    description: str = Field(default="USPS returned an error", alias="Description")

    _normalize_blank = field_validator("*", mode="before")(_blank_to_none)
