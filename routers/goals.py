from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from database.database import get_db
from models.enums import StatusMeta
from models.schemas import GoalCreate, GoalUpdate, GoalProgressUpdate, GoalCancel
from services import goal_service

router = APIRouter(
    prefix="/goals",
    tags=["Metas"]
)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_goal(request: GoalCreate, db: Session = Depends(get_db)):
    return goal_service.create_goal(db, request)


@router.get("")
def list_goals(
    estudante_id: Optional[UUID] = Query(None, alias="estudanteId"),
    intervencao_id: Optional[UUID] = Query(None, alias="intervencaoId"),
    status_meta: Optional[List[StatusMeta]] = Query(None, alias="status"),
    db: Session = Depends(get_db)
):
    return goal_service.list_goals(
        db,
        estudante_id=estudante_id,
        intervencao_id=intervencao_id,
        status=[s.value for s in status_meta] if status_meta else None
    )


@router.get("/{meta_id}")
def get_goal(meta_id: UUID, db: Session = Depends(get_db)):
    return goal_service.get_goal(db, meta_id)


@router.get("/{meta_id}/history")
def get_history(meta_id: UUID, db: Session = Depends(get_db)):
    return goal_service.get_history(db, meta_id)


@router.patch("/{meta_id}")
def update_goal(meta_id: UUID, request: GoalUpdate, db: Session = Depends(get_db)):
    return goal_service.update_goal(db, meta_id, request)


@router.patch("/{meta_id}/progress")
def update_progress(meta_id: UUID, request: GoalProgressUpdate, db: Session = Depends(get_db)):
    return goal_service.update_progress(db, meta_id, request)


@router.patch("/{meta_id}/cancel")
def cancel_goal(
    meta_id: UUID,
    request: Optional[GoalCancel] = None,
    db: Session = Depends(get_db)
):
    return goal_service.cancel_goal(db, meta_id, request.observacoes if request else None)


@router.delete("/{meta_id}")
def remove_goal(meta_id: UUID, db: Session = Depends(get_db)):
    return goal_service.remove_goal(db, meta_id)
