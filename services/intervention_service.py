import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID
from sqlalchemy.orm import Session, selectinload
from database.models import Intervention, Goal
from models.enums import StatusIntervencao
from models.schemas import InterventionCreate, InterventionUpdate, as_utc
from services.exceptions import NotFoundError, ConflictError, DomainValidationError, persistence_errors
from services.screening_service import get_student_or_404

logger = logging.getLogger(__name__)


def serialize_intervention(intervencao: Intervention) -> dict:
    return {
        "id": intervencao.id,
        "startDate": intervencao.start_date,
        "endDate": intervencao.end_date,
        "type": intervencao.type,
        "description": intervencao.description,
        "status": intervencao.status,
        "notes": intervencao.notes,
        "studentId": intervencao.student_id,
        "createdAt": intervencao.criado_em,
        "updatedAt": intervencao.atualizado_em
    }


def _with_student(intervencao: Intervention) -> dict:
    estudante = intervencao.estudante
    return {
        **serialize_intervention(intervencao),
        "student": {"id": estudante.id, "name": estudante.name, "grade": estudante.grade}
    }


def _get_intervention_or_404(db: Session, intervencao_id: UUID) -> Intervention:
    intervencao = db.query(Intervention).options(
        selectinload(Intervention.estudante)
    ).filter(Intervention.id == intervencao_id).first()

    if not intervencao:
        raise NotFoundError("Intervenção não encontrada")
    return intervencao


def create_intervention(db: Session, dto: InterventionCreate) -> dict:
    with persistence_errors(db, "Erro ao criar intervenção"):
        get_student_or_404(db, dto.student_id)

        intervencao = Intervention(**dto.model_dump())
        db.add(intervencao)
        db.commit()
        db.refresh(intervencao)

        logger.info("Intervenção %s criada para o estudante %s", intervencao.id, dto.student_id)
        return _with_student(intervencao)


def list_interventions(db: Session, status: Optional[str] = None) -> List[dict]:
    with persistence_errors(db, "Erro ao buscar intervenções"):
        query = db.query(Intervention).options(selectinload(Intervention.estudante))
        if status:
            query = query.filter(Intervention.status == status)

        intervencoes = query.order_by(Intervention.start_date.desc()).all()
        return [_with_student(i) for i in intervencoes]


def list_interventions_by_student(db: Session, estudante_id: UUID) -> List[dict]:
    with persistence_errors(db, "Erro ao buscar intervenções do estudante"):
        intervencoes = db.query(Intervention).filter(
            Intervention.student_id == estudante_id
        ).order_by(Intervention.start_date.desc()).all()
        return [serialize_intervention(i) for i in intervencoes]


def get_intervention(db: Session, intervencao_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao buscar intervenção"):
        return _with_student(_get_intervention_or_404(db, intervencao_id))


def update_intervention(db: Session, intervencao_id: UUID, dto: InterventionUpdate) -> dict:
    data = dto.model_dump(exclude_unset=True)

    with persistence_errors(db, "Erro ao atualizar intervenção"):
        intervencao = _get_intervention_or_404(db, intervencao_id)
        if "student_id" in data:
            get_student_or_404(db, data["student_id"])

        start_date = as_utc(data.get("start_date", intervencao.start_date))
        end_date = as_utc(data.get("end_date", intervencao.end_date))
        if end_date is not None and end_date < start_date:
            raise DomainValidationError("A data de término não pode ser anterior à data de início")

        for field, value in data.items():
            setattr(intervencao, field, value)
        db.commit()
        db.refresh(intervencao)

        logger.info("Intervenção %s atualizada", intervencao_id)
        return _with_student(intervencao)


def complete_intervention(db: Session, intervencao_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao concluir intervenção"):
        intervencao = _get_intervention_or_404(db, intervencao_id)
        if intervencao.status == StatusIntervencao.CANCELLED.value:
            raise ConflictError("Uma intervenção cancelada não pode ser concluída")

        intervencao.status = StatusIntervencao.COMPLETED.value
        intervencao.end_date = datetime.now(timezone.utc)
        db.commit()
        db.refresh(intervencao)

        logger.info("Intervenção %s concluída", intervencao_id)
        return _with_student(intervencao)


def cancel_intervention(db: Session, intervencao_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao cancelar intervenção"):
        intervencao = _get_intervention_or_404(db, intervencao_id)
        if intervencao.status == StatusIntervencao.COMPLETED.value:
            raise ConflictError("Uma intervenção concluída não pode ser cancelada")

        intervencao.status = StatusIntervencao.CANCELLED.value
        db.commit()
        db.refresh(intervencao)

        logger.info("Intervenção %s cancelada", intervencao_id)
        return _with_student(intervencao)


def remove_intervention(db: Session, intervencao_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao remover intervenção"):
        intervencao = _get_intervention_or_404(db, intervencao_id)

        total_metas = db.query(Goal).filter(Goal.intervencao_id == intervencao_id).count()
        if total_metas > 0:
            raise ConflictError(
                "Não é possível remover esta intervenção pois existem metas associadas"
            )

        db.delete(intervencao)
        db.commit()

    logger.info("Intervenção %s removida", intervencao_id)
    return {"message": "Intervenção removida com sucesso"}
