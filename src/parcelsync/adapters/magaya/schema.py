"""Pydantic models describing Magaya shipment nodes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class MagayaBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class ShipmentPayload(MagayaBaseModel):
    """One ``<Shipment>`` element, keyed by child element name."""

    reference_number: str = Field(alias="ReferenceNumber")
    consignee_name: str = Field(alias="ConsigneeName")

    shipment_id: str | None = Field(default=None, alias="ShipmentID")
    tracking_number: str | None = Field(default=None, alias="TrackingNumber")
    description: str | None = Field(default=None, alias="Description")
    weight: float | None = Field(default=None, alias="Weight")
    dimensions: str | None = Field(default=None, alias="Dimensions")
    declared_value: float | None = Field(default=None, alias="DeclaredValue")
    status: str | None = Field(default=None, alias="Status")
    warehouse_location: str | None = Field(default=None, alias="WarehouseLocation")

    sender_name: str | None = Field(default=None, alias="SenderName")
    sender_address: str | None = Field(default=None, alias="SenderAddress")

    consignee_address: str | None = Field(default=None, alias="ConsigneeAddress")
    consignee_email: str | None = Field(default=None, alias="ConsigneeEmail")
    consignee_phone: str | None = Field(default=None, alias="ConsigneePhone")

    _normalize_blank = field_validator("*", mode="before")(_blank_to_none)

    @field_validator("weight", "declared_value", mode="before")
    @classmethod
    def _strip_units(cls, value: object) -> object:
        # Magaya renders numbers with thousands separators, e.g. "1,250.00".
        if isinstance(value, str):
            return value.replace(",", "")
        return value
