import logging
from typing import List, Optional
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from database.models import Screening, ScreeningIndicator, ScreeningInstrument, ScreeningResult
from models.enums import StatusRastreio
from models.schemas import ScreeningResultCreate, ScreeningResultUpdate, BatchResultItem
from services.exceptions import NotFoundError, persistence_errors
from services.screening_service import (
    get_student_or_404,
    completed_screenings_of_student,
    result_against_cutoff
)

logger = logging.getLogger(__name__)


def serialize_result(resultado: ScreeningResult) -> dict:
    return {
        "id": resultado.id,
        "valor": resultado.valor,
        "nivelRisco": resultado.nivel_risco,
        "observacoes": resultado.observacoes,
        "rastreioId": resultado.rastreio_id,
        "indicadorId": resultado.indicador_id,
        "createdAt": resultado.criado_em,
        "updatedAt": resultado.atualizado_em
    }


def _with_relations(
    resultado: ScreeningResult, com_estudante: bool = False, com_instrumento: bool = False
) -> dict:
    rastreio = resultado.rastreio
    indicador = resultado.indicador

    rastreio_data = {
        "id": rastreio.id,
        "dataAplicacao": rastreio.data_aplicacao,
        "status": rastreio.status
    }
    indicador_data = {
        "id": indicador.id,
        "nome": indicador.nome,
        "tipo": indicador.tipo,
        "pontoCorte": indicador.ponto_corte
    }

    if com_estudante:
        rastreio_data["estudante"] = {
            "id": rastreio.estudante.id,
            "name": rastreio.estudante.name,
            "grade": rastreio.estudante.grade
        }
    if com_instrumento:
        indicador_data["instrumento"] = {
            "id": indicador.instrumento.id,
            "nome": indicador.instrumento.nome,
            "categoria": indicador.instrumento.categoria
        }

    return {**serialize_result(resultado), "rastreio": rastreio_data, "indicador": indicador_data}


def _upsert_result(
    db: Session,
    rastreio_id: UUID,
    indicador_id: UUID,
    valor: float,
    nivel_risco: Optional[str],
    observacoes: Optional[str]
) -> ScreeningResult:
    resultado = db.query(ScreeningResult).filter(
        ScreeningResult.rastreio_id == rastreio_id,
        ScreeningResult.indicador_id == indicador_id
    ).first()

    if resultado is None:
        resultado = ScreeningResult(rastreio_id=rastreio_id, indicador_id=indicador_id)
        db.add(resultado)

    resultado.valor = valor
    resultado.nivel_risco = nivel_risco
    resultado.observacoes = observacoes
    db.flush()
    return resultado


def _mark_completed_if_done(db: Session, rastreio: Screening) -> bool:
    """
    Conclui o rastreio quando todos os indicadores do instrumento têm resultado.

    Um rastreio já concluído não é alterado, e nenhuma operação o reverte.
    """
    if rastreio.status == StatusRastreio.CONCLUIDO.value:
        return False

    total_indicadores = db.query(func.count(ScreeningIndicator.id)).filter(
        ScreeningIndicator.instrumento_id == rastreio.instrumento_id
    ).scalar()
    total_resultados = db.query(func.count(ScreeningResult.id)).filter(
        ScreeningResult.rastreio_id == rastreio.id
    ).scalar()

    if total_indicadores == 0 or total_resultados < total_indicadores:
        return False

    rastreio.status = StatusRastreio.CONCLUIDO.value
    logger.info(
        "Rastreio %s concluído (%d/%d indicadores respondidos)",
        rastreio.id, total_resultados, total_indicadores
    )
    return True


def create_result(db: Session, dto: ScreeningResultCreate) -> dict:
    with persistence_errors(db, "Erro ao registrar resultado de rastreio"):
        rastreio = db.get(Screening, dto.rastreio_id)
        if not rastreio:
            raise NotFoundError("Rastreio não encontrado")

        indicador = db.get(ScreeningIndicator, dto.indicador_id)
        if not indicador:
            raise NotFoundError("Indicador de rastreio não encontrado")

        if indicador.instrumento_id != rastreio.instrumento_id:
            raise NotFoundError("O indicador não pertence ao instrumento deste rastreio")

        resultado = _upsert_result(
            db, rastreio.id, indicador.id, dto.valor, dto.nivel_risco, dto.observacoes
        )
        _mark_completed_if_done(db, rastreio)
        db.commit()
        db.refresh(resultado)

        return _with_relations(resultado)


def list_results(db: Session, rastreio_id: Optional[UUID] = None) -> List[dict]:
    with persistence_errors(db, "Erro ao buscar resultados de rastreio"):
        query = db.query(ScreeningResult).options(
            selectinload(ScreeningResult.rastreio).selectinload(Screening.estudante),
            selectinload(ScreeningResult.indicador)
        )
        if rastreio_id:
            query = query.filter(ScreeningResult.rastreio_id == rastreio_id)

        resultados = query.order_by(ScreeningResult.criado_em).all()
        return [_with_relations(r, com_estudante=True) for r in resultados]


def get_result(db: Session, resultado_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao buscar resultado de rastreio"):
        resultado = db.query(ScreeningResult).options(
            selectinload(ScreeningResult.rastreio).selectinload(Screening.estudante),
            selectinload(ScreeningResult.indicador).selectinload(ScreeningIndicator.instrumento)
        ).filter(ScreeningResult.id == resultado_id).first()

        if not resultado:
            raise NotFoundError("Resultado de rastreio não encontrado")
        return _with_relations(resultado, com_estudante=True, com_instrumento=True)


def update_result(db: Session, resultado_id: UUID, dto: ScreeningResultUpdate) -> dict:
    data = dto.model_dump(exclude_unset=True)

    with persistence_errors(db, "Erro ao atualizar resultado de rastreio"):
        resultado = db.get(ScreeningResult, resultado_id)
        if not resultado:
            raise NotFoundError("Resultado de rastreio não encontrado")

        for field, value in data.items():
            setattr(resultado, field, value)
        db.commit()
        db.refresh(resultado)

        return _with_relations(resultado)


def remove_result(db: Session, resultado_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao remover resultado de rastreio"):
        resultado = db.get(ScreeningResult, resultado_id)
        if not resultado:
            raise NotFoundError("Resultado de rastreio não encontrado")

        db.delete(resultado)
        db.commit()

    logger.info("Resultado %s removido", resultado_id)
    return {"message": "Resultado de rastreio removido com sucesso"}


def register_batch(db: Session, rastreio_id: UUID, resultados: List[BatchResultItem]) -> dict:
    with persistence_errors(db, "Erro ao registrar resultados em lote"):
        rastreio = db.query(Screening).options(
            selectinload(Screening.instrumento).selectinload(ScreeningInstrument.indicadores)
        ).filter(Screening.id == rastreio_id).first()

        if not rastreio:
            raise NotFoundError("Rastreio não encontrado")

        # O lote inteiro é recusado antes de qualquer escrita
        indicadores_do_instrumento = [i.id for i in rastreio.instrumento.indicadores]
        for item in resultados:
            if item.indicador_id not in indicadores_do_instrumento:
                raise NotFoundError(
                    f"O indicador {item.indicador_id} não pertence ao instrumento deste rastreio"
                )

        for item in resultados:
            _upsert_result(
                db, rastreio_id, item.indicador_id, item.valor, item.nivel_risco, item.observacoes
            )

        _mark_completed_if_done(db, rastreio)
        db.commit()

        logger.info("%d resultado(s) registrados para o rastreio %s", len(resultados), rastreio_id)
        return {
            "message": "Resultados registrados com sucesso",
            "total": len(resultados),
            "status": rastreio.status
        }


def find_by_student(db: Session, estudante_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao buscar resultados do estudante"):
        estudante = get_student_or_404(db, estudante_id)
        rastreios = completed_screenings_of_student(db, estudante_id)

        return {
            "estudante": {"id": estudante.id, "nome": estudante.name, "serie": estudante.grade},
            "rastreios": [
                {
                    "id": r.id,
                    "data": r.data_aplicacao,
                    "instrumento": {
                        "id": r.instrumento.id,
                        "nome": r.instrumento.nome,
                        "categoria": r.instrumento.categoria
                    },
                    "resultados": [result_against_cutoff(res) for res in r.resultados]
                }
                for r in rastreios
            ]
        }
