"""
Pydantic models for API request/response serialization.
"""
from typing import Optional, List
from pydantic import BaseModel

class VehicleOut(BaseModel):
    """Output model for vehicle data."""
    id: str
    url: str
    main_image: Optional[str] = None
    image_gallery: List[str] = []
    price: float = 0.0
    manufacturer: str = ""
    model: str = ""
    vehicle_number: str = ""
    vehicle_type: str = ""
    first_registration: str = ""
    model_year: int
    mileage: int = 0
    power: str = ""
    fuel_type: str = ""
    transmission: str = ""
    exterior_color: str = ""
    interior_color: str = ""
    upholstery: str = ""
    acceleration: Optional[str] = None
    warranty: Optional[str] = None
    charging_duration: Optional[str] = None
    electric_range: Optional[str] = None
    energy: Optional[str] = None
    dealer_location: str = ""
    interior: List[str] = []
    exterior: List[str] = []
    infotainment: List[str] = []
    safety_tech: List[str] = []
    packages: List[str] = []
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

class VehiclesResponse(BaseModel):
    """Response model for paginated vehicles."""
    vehicles: List[VehicleOut]
    total: int
    limit: int
    offset: int

class PricePoint(BaseModel):
    """Model for price history data point."""
    ts: str
    price: Optional[float]

class CrawlRequest(BaseModel):
    """Body of a crawl request."""
    url: Optional[str] = None

class CrawlResponse(BaseModel):
    """Stored vehicle after a successful crawl."""
    message: str
    vehicle: VehicleOut
    is_new: bool

class RecentCrawl(BaseModel):
    id: str
    model: str
    url: str
    updated_at: Optional[str] = None

class CrawlStatus(BaseModel):
    """Catalog size and latest crawls."""
    total_vehicles: int
    recent_crawls: List[RecentCrawl]
