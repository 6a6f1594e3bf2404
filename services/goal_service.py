import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID
from sqlalchemy.orm import Session, selectinload
from database.models import Goal, GoalHistory, Intervention
from models.enums import StatusMeta
from models.schemas import GoalCreate, GoalUpdate, GoalProgressUpdate
from services.exceptions import NotFoundError, ConflictError, persistence_errors
from services.screening_service import get_student_or_404

logger = logging.getLogger(__name__)


def serialize_history(entrada: GoalHistory) -> dict:
    return {
        "id": entrada.id,
        "data": entrada.data,
        "status": entrada.status,
        "progresso": entrada.progresso,
        "observacoes": entrada.observacoes
    }


def serialize_goal(meta: Goal) -> dict:
    intervencao = meta.intervencao
    return {
        "id": meta.id,
        "titulo": meta.titulo,
        "descricao": meta.descricao,
        "criterioSucesso": meta.criterio_sucesso,
        "prazo": meta.prazo,
        "observacoes": meta.observacoes,
        "status": meta.status,
        "progresso": meta.progresso,
        "estudanteId": meta.estudante_id,
        "intervencaoId": meta.intervencao_id,
        "createdAt": meta.criado_em,
        "updatedAt": meta.atualizado_em,
        "estudante": {
            "id": meta.estudante.id,
            "name": meta.estudante.name,
            "grade": meta.estudante.grade
        },
        "intervencao": {
            "id": intervencao.id,
            "type": intervencao.type,
            "status": intervencao.status
        } if intervencao else None,
        "historico": [serialize_history(h) for h in meta.historico]
    }


def _goal_query(db: Session):
    return db.query(Goal).options(
        selectinload(Goal.estudante),
        selectinload(Goal.intervencao),
        selectinload(Goal.historico)
    )


def _get_goal_or_404(db: Session, meta_id: UUID) -> Goal:
    meta = _goal_query(db).filter(Goal.id == meta_id).first()
    if not meta:
        raise NotFoundError(f"Meta com ID {meta_id} não encontrada")
    return meta


def _check_intervention(db: Session, intervencao_id: Optional[UUID]):
    if intervencao_id is not None and db.get(Intervention, intervencao_id) is None:
        raise NotFoundError(f"Intervenção com ID {intervencao_id} não encontrada")


def _record(db: Session, meta: Goal, observacoes: Optional[str]):
    db.add(GoalHistory(
        goal_id=meta.id,
        data=datetime.now(timezone.utc),
        status=meta.status,
        progresso=meta.progresso,
        observacoes=observacoes
    ))


def create_goal(db: Session, dto: GoalCreate) -> dict:
    with persistence_errors(db, "Erro ao criar meta"):
        get_student_or_404(db, dto.estudante_id)
        _check_intervention(db, dto.intervencao_id)

        meta = Goal(
            **dto.model_dump(),
            status=StatusMeta.NAO_INICIADA.value,
            progresso=0
        )
        db.add(meta)
        db.flush()
        _record(db, meta, "Meta criada")
        db.commit()

    logger.info("Meta %s criada para o estudante %s", meta.id, dto.estudante_id)
    return get_goal(db, meta.id)


def list_goals(
    db: Session,
    estudante_id: Optional[UUID] = None,
    intervencao_id: Optional[UUID] = None,
    status: Optional[List[str]] = None
) -> List[dict]:
    with persistence_errors(db, "Erro ao buscar metas"):
        query = _goal_query(db)
        if estudante_id:
            query = query.filter(Goal.estudante_id == estudante_id)
        if intervencao_id:
            query = query.filter(Goal.intervencao_id == intervencao_id)
        if status:
            query = query.filter(Goal.status.in_(status))

        metas = query.order_by(Goal.status.asc(), Goal.prazo.asc()).all()
        return [serialize_goal(m) for m in metas]


def get_goal(db: Session, meta_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao buscar meta"):
        return serialize_goal(_get_goal_or_404(db, meta_id))


def update_goal(db: Session, meta_id: UUID, dto: GoalUpdate) -> dict:
    data = dto.model_dump(exclude_unset=True)

    with persistence_errors(db, "Erro ao atualizar meta"):
        meta = _get_goal_or_404(db, meta_id)
        _check_intervention(db, data.get("intervencao_id"))

        for field, value in data.items():
            setattr(meta, field, value)
        _record(db, meta, "Meta atualizada")
        db.commit()

    logger.info("Meta %s atualizada", meta_id)
    return get_goal(db, meta_id)


def update_progress(db: Session, meta_id: UUID, dto: GoalProgressUpdate) -> dict:
    with persistence_errors(db, "Erro ao atualizar progresso da meta"):
        meta = _get_goal_or_404(db, meta_id)
        if meta.status == StatusMeta.CANCELADA.value:
            raise ConflictError("Não é possível registrar progresso em uma meta cancelada")

        # 100% conclui; qualquer progresso positivo coloca a meta em andamento
        if dto.progresso == 100:
            meta.status = StatusMeta.CONCLUIDA.value
        elif dto.progresso > 0:
            meta.status = StatusMeta.EM_ANDAMENTO.value
        meta.progresso = dto.progresso

        _record(db, meta, dto.observacoes)
        db.commit()

    logger.info("Progresso da meta %s: %d%%", meta_id, dto.progresso)
    return get_goal(db, meta_id)


def cancel_goal(db: Session, meta_id: UUID, observacoes: Optional[str]) -> dict:
    with persistence_errors(db, "Erro ao cancelar meta"):
        meta = _get_goal_or_404(db, meta_id)
        meta.status = StatusMeta.CANCELADA.value
        _record(db, meta, observacoes)
        db.commit()

    logger.info("Meta %s cancelada", meta_id)
    return get_goal(db, meta_id)


def remove_goal(db: Session, meta_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao remover meta"):
        meta = _get_goal_or_404(db, meta_id)

        for entrada in list(meta.historico):
            db.delete(entrada)
        db.delete(meta)
        db.commit()

    logger.info("Meta %s removida com seu histórico", meta_id)
    return {"message": "Meta removida com sucesso"}


def get_history(db: Session, meta_id: UUID) -> List[dict]:
    with persistence_errors(db, "Erro ao buscar histórico da meta"):
        meta = _get_goal_or_404(db, meta_id)
        return [serialize_history(h) for h in meta.historico]
