"""
Data models for the vehicle crawler.
"""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Union

# Logical field name -> raw text or list of raw texts, as read from the page.
RawExtraction = Dict[str, Union[str, List[str]]]

FEATURE_FIELDS = ("interior", "exterior", "infotainment", "safety_tech", "packages")


@dataclass
class Vehicle:
    """Normalized vehicle record, ready to be persisted by URL."""

    url: str
    model: str = ""
    price: float = 0.0
    model_year: int = 0
    mileage: int = 0

    # Media (server-relative paths to downloaded files)
    main_image: Optional[str] = None
    image_gallery: List[str] = field(default_factory=list)

    # Specification fields
    manufacturer: str = "Mercedes-Benz"
    vehicle_number: str = ""
    vehicle_type: str = ""
    first_registration: str = ""
    power: str = ""
    fuel_type: str = ""
    transmission: str = ""
    exterior_color: str = ""
    interior_color: str = ""
    upholstery: str = ""
    acceleration: str = ""
    warranty: str = ""
    charging_duration: str = ""
    electric_range: str = ""
    energy: str = ""
    dealer_location: str = ""

    # Equipment lists
    interior: List[str] = field(default_factory=list)
    exterior: List[str] = field(default_factory=list)
    infotainment: List[str] = field(default_factory=list)
    safety_tech: List[str] = field(default_factory=list)
    packages: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CrawlResult:
    """Outcome of one crawl attempt: a vehicle on success, a message otherwise."""

    success: bool
    vehicle: Optional[Vehicle] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, vehicle: Vehicle) -> "CrawlResult":
        return cls(success=True, vehicle=vehicle)

    @classmethod
    def failed(cls, message: str) -> "CrawlResult":
        return cls(success=False, error=message)
