from .scan import router as scan_router
from .locations import router as locations_router
from .ric_codes import router as ric_codes_router

__all__ = ["scan_router", "locations_router", "ric_codes_router"]
