from fastapi import APIRouter, Depends

from ..heats.store import HeatStore
from .deps import get_heat_store

router = APIRouter(prefix="/api", tags=["heats"])


@router.get("/heats")
def list_heats(store: HeatStore = Depends(get_heat_store)):
    return store.list_heats()


@router.get("/heat/{heat_id}")
@router.get("/heats/{heat_id}")
def get_heat(heat_id: int, store: HeatStore = Depends(get_heat_store)):
    """Static/seeded heat record: chemistry, grade, master, stages."""
    return store.get(heat_id)
