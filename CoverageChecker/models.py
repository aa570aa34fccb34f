# CoverageChecker/models.py
"""Records passed between the fetchers, the matcher and the HTTP layer."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

REGISTRY_ONLY_PREFIX = "GSMA_"


@dataclass(frozen=True)
class RegistryRecord:
    """One row of the GSMA feed."""

    registry_id: str
    name: str
    country_name: str


@dataclass(frozen=True)
class ListingRecord:
    """One operator returned by the nPerf per-country listing."""

    country_code: str
    listing_id: str
    listing_name: str
    link: str = ""


@dataclass(frozen=True)
class OperatorRecord:
    """A row of the reconciled ``operators.json`` artifact."""

    country_code: str
    operator_id: str
    operator_name: str
    link: str = ""
    registry_id: str = ""

    @classmethod
    def from_listing(cls, listing: ListingRecord, registry_id: str = "") -> "OperatorRecord":
        return cls(
            country_code=listing.country_code,
            operator_id=listing.listing_id,
            operator_name=listing.listing_name,
            link=listing.link,
            registry_id=registry_id,
        )

    @classmethod
    def from_registry(cls, record: RegistryRecord, country_code: str) -> "OperatorRecord":
        """Registry-only entry: prefixed id and no coverage link."""
        return cls(
            country_code=country_code,
            operator_id=REGISTRY_ONLY_PREFIX + record.registry_id,
            operator_name=record.name,
            link="",
            registry_id=record.registry_id,
        )

    @property
    def sort_key(self):
        return (self.country_code, self.operator_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "countryCode": self.country_code,
            "operatorId": self.operator_id,
            "operatorName": self.operator_name,
            "link": self.link,
            "registryId": self.registry_id,
        }


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class Resolution:
    """Outcome of expanding a map link."""

    final_url: str
    coords: Optional[Coordinate] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"expandedUrl": self.final_url}
        if self.coords is not None:
            data["coords"] = self.coords.to_dict()
        return data
