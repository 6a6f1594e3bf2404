from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from database.database import get_db
from models.schemas import ScreeningInstrumentCreate, ScreeningInstrumentUpdate, ScreeningIndicatorCreate
from services import screening_instrument_service

router = APIRouter(
    prefix="/screening-instruments",
    tags=["Instrumentos de Rastreio"]
)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_instrument(request: ScreeningInstrumentCreate, db: Session = Depends(get_db)):
    return screening_instrument_service.create_instrument(db, request)


@router.get("")
def list_instruments(
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: Session = Depends(get_db)
):
    return screening_instrument_service.list_instruments(db, include_inactive)


@router.post("/indicators", status_code=status.HTTP_201_CREATED)
def add_indicator(request: ScreeningIndicatorCreate, db: Session = Depends(get_db)):
    return screening_instrument_service.add_indicator(db, request)


@router.get("/indicators/{instrumento_id}")
def list_indicators(instrumento_id: UUID, db: Session = Depends(get_db)):
    return screening_instrument_service.list_indicators(db, instrumento_id)


@router.get("/indicator/{indicador_id}")
def get_indicator(indicador_id: UUID, db: Session = Depends(get_db)):
    return screening_instrument_service.get_indicator(db, indicador_id)


@router.delete("/indicator/{indicador_id}")
def remove_indicator(indicador_id: UUID, db: Session = Depends(get_db)):
    return screening_instrument_service.remove_indicator(db, indicador_id)


@router.get("/{instrumento_id}")
def get_instrument(instrumento_id: UUID, db: Session = Depends(get_db)):
    return screening_instrument_service.get_instrument(db, instrumento_id)


@router.patch("/{instrumento_id}")
def update_instrument(
    instrumento_id: UUID,
    request: ScreeningInstrumentUpdate,
    db: Session = Depends(get_db)
):
    return screening_instrument_service.update_instrument(db, instrumento_id, request)


@router.delete("/{instrumento_id}")
def remove_instrument(instrumento_id: UUID, db: Session = Depends(get_db)):
    return screening_instrument_service.remove_instrument(db, instrumento_id)
