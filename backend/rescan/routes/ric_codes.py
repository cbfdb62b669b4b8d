"""
/ric-codes endpoints: Resin Identification Code reference data.
"""

from fastapi import APIRouter, HTTPException

from ..models import RicCodeInfo
from ..services.ric_codes import get_ric_info, list_ric_codes

router = APIRouter()


@router.get("/ric-codes", response_model=list[RicCodeInfo])
def ric_codes() -> list[RicCodeInfo]:
    return list_ric_codes()


@router.get("/ric-codes/{code}", response_model=RicCodeInfo)
def ric_code(code: int) -> RicCodeInfo:
    info = get_ric_info(code)
    if info is None:
        raise HTTPException(status_code=404, detail=f"Unknown RIC code {code}. Valid codes are 1-7.")
    return info
