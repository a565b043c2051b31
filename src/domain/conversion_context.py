from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RateType(StrEnum):
    ANY = "ANY"
    CURRENT = "CURRENT"
    DEFERRED = "DEFERRED"
    HISTORIC = "HISTORIC"
    OTHER = "OTHER"

    def matches(self, other: RateType) -> bool:
        return RateType.ANY in (self, other) or self == other


class ConversionContext(BaseModel):
    """Provenance of a rate: which provider, what kind of rate, when it is valid.

    ``attributes`` carries provider specific options. They are never interpreted
    here and are passed through unmodified. They are held in a read-only copy,
    so every rate sharing a context sees the same options.
    """

    model_config = ConfigDict(frozen=True)

    provider_name: str
    rate_type: RateType = RateType.ANY
    timestamp: datetime | None = None
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    attributes: Mapping[str, Any] = Field(default_factory=lambda: MappingProxyType({}))

    @field_validator("attributes", mode="after")
    @classmethod
    def _freeze_attributes(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @model_validator(mode="after")
    def _validate_fields(self) -> ConversionContext:
        if not self.provider_name or not self.provider_name.strip():
            raise ValueError("provider_name must be non-empty")
        if self.valid_from is not None and self.valid_to is not None and self.valid_from > self.valid_to:
            raise ValueError("valid_from must not be after valid_to")
        return self

    @classmethod
    def of(cls, provider_name: str, rate_type: RateType = RateType.ANY) -> ConversionContext:
        return cls(provider_name=provider_name, rate_type=rate_type)

    def with_attributes(self, **attributes: Any) -> ConversionContext:
        return self.model_copy(update={"attributes": MappingProxyType({**self.attributes, **attributes})})

    def __hash__(self) -> int:
        # attributes may hold unhashable values; equal contexts still hash equal
        return hash((self.provider_name, self.rate_type, self.timestamp, self.valid_from, self.valid_to))


__all__ = ["ConversionContext", "RateType"]
