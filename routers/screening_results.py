from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from database.database import get_db
from models.schemas import ScreeningResultCreate, ScreeningResultUpdate, BatchResultItem
from services import screening_result_service

router = APIRouter(
    prefix="/screening-results",
    tags=["Resultados de Rastreio"]
)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_result(request: ScreeningResultCreate, db: Session = Depends(get_db)):
    return screening_result_service.create_result(db, request)


@router.get("")
def list_results(
    rastreio_id: Optional[UUID] = Query(None, alias="rastreioId"),
    db: Session = Depends(get_db)
):
    return screening_result_service.list_results(db, rastreio_id)


@router.post("/batch/{rastreio_id}", status_code=status.HTTP_201_CREATED)
def register_batch(
    rastreio_id: UUID,
    resultados: List[BatchResultItem],
    db: Session = Depends(get_db)
):
    return screening_result_service.register_batch(db, rastreio_id, resultados)


@router.get("/student/{estudante_id}")
def find_by_student(estudante_id: UUID, db: Session = Depends(get_db)):
    return screening_result_service.find_by_student(db, estudante_id)


@router.get("/{resultado_id}")
def get_result(resultado_id: UUID, db: Session = Depends(get_db)):
    return screening_result_service.get_result(db, resultado_id)


@router.patch("/{resultado_id}")
def update_result(resultado_id: UUID, request: ScreeningResultUpdate, db: Session = Depends(get_db)):
    return screening_result_service.update_result(db, resultado_id, request)


@router.delete("/{resultado_id}")
def remove_result(resultado_id: UUID, db: Session = Depends(get_db)):
    return screening_result_service.remove_result(db, resultado_id)
