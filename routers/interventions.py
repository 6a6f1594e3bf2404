from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from database.database import get_db
from models.enums import StatusIntervencao
from models.schemas import InterventionCreate, InterventionUpdate
from services import intervention_service

router = APIRouter(
    prefix="/interventions",
    tags=["Intervenções"]
)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_intervention(request: InterventionCreate, db: Session = Depends(get_db)):
    return intervention_service.create_intervention(db, request)


@router.get("")
def list_interventions(
    status_intervencao: Optional[StatusIntervencao] = Query(None, alias="status"),
    db: Session = Depends(get_db)
):
    return intervention_service.list_interventions(
        db, status_intervencao.value if status_intervencao else None
    )


@router.get("/student/{estudante_id}")
def list_interventions_by_student(estudante_id: UUID, db: Session = Depends(get_db)):
    return intervention_service.list_interventions_by_student(db, estudante_id)


@router.get("/{intervencao_id}")
def get_intervention(intervencao_id: UUID, db: Session = Depends(get_db)):
    return intervention_service.get_intervention(db, intervencao_id)


@router.patch("/{intervencao_id}")
def update_intervention(
    intervencao_id: UUID,
    request: InterventionUpdate,
    db: Session = Depends(get_db)
):
    return intervention_service.update_intervention(db, intervencao_id, request)


@router.patch("/{intervencao_id}/complete")
def complete_intervention(intervencao_id: UUID, db: Session = Depends(get_db)):
    return intervention_service.complete_intervention(db, intervencao_id)


@router.patch("/{intervencao_id}/cancel")
def cancel_intervention(intervencao_id: UUID, db: Session = Depends(get_db)):
    return intervention_service.cancel_intervention(db, intervencao_id)


@router.delete("/{intervencao_id}")
def remove_intervention(intervencao_id: UUID, db: Session = Depends(get_db)):
    return intervention_service.remove_intervention(db, intervencao_id)
