"""
API route handlers for vehicle catalog endpoints.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Query, HTTPException, Depends
from fastapi.responses import StreamingResponse
import pandas as pd

from ..models import VehicleOut, VehiclesResponse, PricePoint
from ..database import (
    get_vehicles_count, get_vehicles, get_vehicle_by_id, get_price_history
)
from ..config import config

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["vehicles"])

def get_vehicle_filters(
    search: Optional[str] = None,
    fuel_type: Optional[str] = None,
    transmission: Optional[str] = None,
    max_price: Optional[float] = None,
) -> dict:
    """Dependency to extract vehicle filters."""
    return {
        'search': search,
        'fuel_type': fuel_type,
        'transmission': transmission,
        'max_price': max_price,
    }

@router.get("/vehicles", response_model=VehiclesResponse)
async def get_api_vehicles(
    filters: dict = Depends(get_vehicle_filters),
    sort: str = 'price_asc',
    limit: int = Query(config.DEFAULT_API_LIMIT, ge=1, le=config.MAX_API_LIMIT),
    offset: int = Query(0, ge=0)
):
    """Get vehicles with filtering, sorting and pagination."""
    try:
        total = get_vehicles_count(filters)
        items = [VehicleOut(**item) for item in get_vehicles(filters, sort, limit, offset)]
        return VehiclesResponse(vehicles=items, total=total, limit=limit, offset=offset)

    except Exception as e:
        logger.error(f"Error fetching vehicles: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

@router.get("/vehicles/{vehicle_id}", response_model=VehicleOut)
async def get_api_vehicle(vehicle_id: str):
    """Get a specific vehicle by ID."""
    try:
        vehicle_data = get_vehicle_by_id(vehicle_id)
        if not vehicle_data:
            raise HTTPException(status_code=404, detail="Vehicle not found")

        return VehicleOut(**vehicle_data)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching vehicle {vehicle_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

@router.get("/vehicles/{vehicle_id}/price-history", response_model=List[PricePoint])
async def get_api_price_history(vehicle_id: str):
    """Get price history for a specific vehicle."""
    try:
        if not get_vehicle_by_id(vehicle_id):
            raise HTTPException(status_code=404, detail="Vehicle not found")

        return [PricePoint(**point) for point in get_price_history(vehicle_id)]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching price history for {vehicle_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

@router.get("/export/csv")
async def export_vehicles_csv(
    filters: dict = Depends(get_vehicle_filters),
    sort: str = 'price_asc'
):
    """Export filtered vehicles as CSV."""
    try:
        vehicles_data = get_vehicles(filters, sort, limit=config.EXPORT_LIMIT, offset=0)

        if not vehicles_data:
            # Return empty CSV with headers
            df = pd.DataFrame(columns=['id', 'url', 'model', 'price', 'model_year', 'mileage'])
        else:
            df = pd.DataFrame(vehicles_data)
            for col in ('image_gallery', 'interior', 'exterior', 'infotainment', 'safety_tech', 'packages'):
                df[col] = df[col].map(lambda items: "|".join(items))

        csv_content = df.to_csv(index=False).encode('utf-8')

        return StreamingResponse(
            iter([csv_content]),
            media_type='text/csv',
            headers={'Content-Disposition': 'attachment; filename="vehicles.csv"'}
        )

    except Exception as e:
        logger.error(f"Error exporting CSV: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
