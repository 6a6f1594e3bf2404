from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from database.database import get_db
from models.enums import StatusRastreio
from models.schemas import ScreeningCreate, ScreeningUpdate
from services import screening_service

router = APIRouter(
    prefix="/screenings",
    tags=["Rastreios"]
)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_screening(request: ScreeningCreate, db: Session = Depends(get_db)):
    return screening_service.create_screening(db, request)


@router.get("")
def list_screenings(
    estudante_id: Optional[UUID] = Query(None, alias="estudanteId"),
    aplicador_id: Optional[UUID] = Query(None, alias="aplicadorId"),
    instrumento_id: Optional[UUID] = Query(None, alias="instrumentoId"),
    status_rastreio: Optional[StatusRastreio] = Query(None, alias="status"),
    db: Session = Depends(get_db)
):
    return screening_service.list_screenings(
        db,
        estudante_id=estudante_id,
        aplicador_id=aplicador_id,
        instrumento_id=instrumento_id,
        status=status_rastreio.value if status_rastreio else None
    )


@router.get("/student/{estudante_id}")
def get_student_results(estudante_id: UUID, db: Session = Depends(get_db)):
    return screening_service.get_student_results(db, estudante_id)


@router.get("/statistics/general")
def get_statistics(db: Session = Depends(get_db)):
    return screening_service.get_statistics(db)


@router.get("/{rastreio_id}")
def get_screening(rastreio_id: UUID, db: Session = Depends(get_db)):
    return screening_service.get_screening(db, rastreio_id)


@router.patch("/{rastreio_id}")
def update_screening(rastreio_id: UUID, request: ScreeningUpdate, db: Session = Depends(get_db)):
    return screening_service.update_screening(db, rastreio_id, request)


@router.delete("/{rastreio_id}")
def remove_screening(rastreio_id: UUID, db: Session = Depends(get_db)):
    return screening_service.remove_screening(db, rastreio_id)
