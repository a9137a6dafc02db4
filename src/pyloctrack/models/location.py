"""Location sample model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from pyloctrack._normalize import parse_timestamp, safe_float

UNKNOWN_LOCATION_TEXT = "Unknown location"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LocationSample(BaseModel):
    """A single location fix delivered by a location source.

    Parameters
    ----------
    latitude : float
        Latitude in degrees, within ``[-90, 90]``.
    longitude : float
        Longitude in degrees, within ``[-180, 180]``.
    timestamp : datetime
        When the fix was taken (timezone-aware, UTC if the provider sent
        a naive or epoch value).
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    latitude: float = Field(validation_alias=AliasChoices("latitude", "lat", "gpsLatitude"), ge=-90.0, le=90.0)
    longitude: float = Field(
        validation_alias=AliasChoices("longitude", "lon", "lng", "gpsLongitude"),
        ge=-180.0,
        le=180.0,
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        validation_alias=AliasChoices("timestamp", "time", "tst", "fixTime"),
    )

    @model_validator(mode="before")
    @classmethod
    def _merge_nested_data(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        nested = values.get("data") or values.get("location")
        if isinstance(nested, dict):
            merged = dict(values)
            merged.update(nested)
            return merged
        return values

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> Any:
        parsed = safe_float(value)
        # Unparseable input is passed through so pydantic reports it.
        return value if parsed is None else parsed

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> Any:
        parsed = parse_timestamp(value)
        return value if parsed is None else parsed

    def to_text(self) -> str:
        """Coordinates rendered as ``(<lat>, <lon>)``."""
        return f"({self.latitude}, {self.longitude})"


def location_text(sample: LocationSample | None) -> str:
    """Render *sample* for display, or the unknown-location placeholder."""
    if sample is None:
        return UNKNOWN_LOCATION_TEXT
    return sample.to_text()
