import logging
from typing import List, Optional
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from database.models import (
    Screening,
    ScreeningInstrument,
    ScreeningResult,
    Student,
    User
)
from models.enums import StatusRastreio
from models.schemas import ScreeningCreate, ScreeningUpdate
from services.exceptions import NotFoundError, persistence_errors
from services.screening_instrument_service import serialize_indicator

logger = logging.getLogger(__name__)


def serialize_screening(rastreio: Screening) -> dict:
    return {
        "id": rastreio.id,
        "dataAplicacao": rastreio.data_aplicacao,
        "observacoes": rastreio.observacoes,
        "status": rastreio.status,
        "estudanteId": rastreio.estudante_id,
        "aplicadorId": rastreio.aplicador_id,
        "instrumentoId": rastreio.instrumento_id,
        "createdAt": rastreio.criado_em,
        "updatedAt": rastreio.atualizado_em
    }


def _student_summary(estudante: Student) -> dict:
    return {"id": estudante.id, "name": estudante.name, "grade": estudante.grade}


def _instrument_summary(instrumento: ScreeningInstrument) -> dict:
    return {"id": instrumento.id, "nome": instrumento.nome, "categoria": instrumento.categoria}


def _summary(rastreio: Screening) -> dict:
    return {
        **serialize_screening(rastreio),
        "estudante": _student_summary(rastreio.estudante),
        "instrumento": _instrument_summary(rastreio.instrumento)
    }


def _get_screening_or_404(db: Session, rastreio_id: UUID) -> Screening:
    rastreio = db.query(Screening).options(
        selectinload(Screening.estudante),
        selectinload(Screening.aplicador),
        selectinload(Screening.instrumento).selectinload(ScreeningInstrument.indicadores),
        selectinload(Screening.resultados).selectinload(ScreeningResult.indicador)
    ).filter(Screening.id == rastreio_id).first()

    if not rastreio:
        raise NotFoundError("Rastreio não encontrado")
    return rastreio


def get_student_or_404(db: Session, estudante_id: UUID) -> Student:
    estudante = db.get(Student, estudante_id)
    if not estudante:
        raise NotFoundError("Estudante não encontrado")
    return estudante


def completed_screenings_of_student(db: Session, estudante_id: UUID) -> List[Screening]:
    return db.query(Screening).options(
        selectinload(Screening.instrumento),
        selectinload(Screening.resultados).selectinload(ScreeningResult.indicador)
    ).filter(
        Screening.estudante_id == estudante_id,
        Screening.status == StatusRastreio.CONCLUIDO.value
    ).order_by(Screening.data_aplicacao.desc()).all()


def result_against_cutoff(resultado: ScreeningResult) -> dict:
    return {
        "id": resultado.id,
        "indicador": resultado.indicador.nome,
        "valor": resultado.valor,
        "pontoCorte": resultado.indicador.ponto_corte,
        "nivelRisco": resultado.nivel_risco,
        "acimaDoPontoCorte": resultado.valor >= resultado.indicador.ponto_corte
    }


def create_screening(db: Session, dto: ScreeningCreate) -> dict:
    with persistence_errors(db, "Erro ao criar rastreio"):
        estudante = get_student_or_404(db, dto.estudante_id)

        if db.get(User, dto.aplicador_id) is None:
            raise NotFoundError("Aplicador não encontrado")

        instrumento = db.get(ScreeningInstrument, dto.instrumento_id)
        if not instrumento:
            raise NotFoundError("Instrumento de rastreio não encontrado")

        rastreio = Screening(**dto.model_dump())
        db.add(rastreio)
        db.commit()
        db.refresh(rastreio)

        logger.info(
            "Rastreio %s criado para o estudante %s com o instrumento %s",
            rastreio.id, estudante.id, instrumento.id
        )
        return _summary(rastreio)


def list_screenings(
    db: Session,
    estudante_id: Optional[UUID] = None,
    aplicador_id: Optional[UUID] = None,
    instrumento_id: Optional[UUID] = None,
    status: Optional[str] = None
) -> List[dict]:
    with persistence_errors(db, "Erro ao buscar rastreios"):
        query = db.query(Screening).options(
            selectinload(Screening.estudante),
            selectinload(Screening.aplicador),
            selectinload(Screening.instrumento),
            selectinload(Screening.resultados).selectinload(ScreeningResult.indicador)
        )

        if estudante_id:
            query = query.filter(Screening.estudante_id == estudante_id)
        if aplicador_id:
            query = query.filter(Screening.aplicador_id == aplicador_id)
        if instrumento_id:
            query = query.filter(Screening.instrumento_id == instrumento_id)
        if status:
            query = query.filter(Screening.status == status)

        rastreios = query.order_by(Screening.data_aplicacao.desc()).all()

        return [
            {
                **_summary(r),
                "aplicador": {"id": r.aplicador.id, "name": r.aplicador.name, "email": r.aplicador.email},
                "resultados": [
                    {
                        "id": res.id,
                        "valor": res.valor,
                        "nivelRisco": res.nivel_risco,
                        "indicador": {
                            "id": res.indicador.id,
                            "nome": res.indicador.nome,
                            "pontoCorte": res.indicador.ponto_corte
                        }
                    }
                    for res in r.resultados
                ]
            }
            for r in rastreios
        ]


def get_screening(db: Session, rastreio_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao buscar rastreio"):
        rastreio = _get_screening_or_404(db, rastreio_id)
        return {
            **serialize_screening(rastreio),
            "estudante": {
                **_student_summary(rastreio.estudante),
                "dateOfBirth": rastreio.estudante.date_of_birth
            },
            "aplicador": {
                "id": rastreio.aplicador.id,
                "name": rastreio.aplicador.name,
                "email": rastreio.aplicador.email
            },
            "instrumento": {
                **_instrument_summary(rastreio.instrumento),
                "indicadores": [serialize_indicator(i) for i in rastreio.instrumento.indicadores]
            },
            "resultados": [
                {
                    "id": res.id,
                    "valor": res.valor,
                    "nivelRisco": res.nivel_risco,
                    "observacoes": res.observacoes,
                    "indicadorId": res.indicador_id,
                    "indicador": serialize_indicator(res.indicador)
                }
                for res in rastreio.resultados
            ]
        }


def update_screening(db: Session, rastreio_id: UUID, dto: ScreeningUpdate) -> dict:
    data = dto.model_dump(exclude_unset=True)

    with persistence_errors(db, "Erro ao atualizar rastreio"):
        rastreio = _get_screening_or_404(db, rastreio_id)
        for field, value in data.items():
            setattr(rastreio, field, value)
        db.commit()
        db.refresh(rastreio)

        logger.info("Rastreio %s atualizado", rastreio_id)
        return _summary(rastreio)


def remove_screening(db: Session, rastreio_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao remover rastreio"):
        rastreio = _get_screening_or_404(db, rastreio_id)

        for resultado in list(rastreio.resultados):
            db.delete(resultado)
        db.delete(rastreio)
        db.commit()

    logger.info("Rastreio %s removido", rastreio_id)
    return {"message": "Rastreio removido com sucesso"}


def get_student_results(db: Session, estudante_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao buscar resultados do estudante"):
        estudante = get_student_or_404(db, estudante_id)

        por_categoria = {}
        for rastreio in completed_screenings_of_student(db, estudante_id):
            categoria = rastreio.instrumento.categoria
            por_categoria.setdefault(categoria, []).append({
                "id": rastreio.id,
                "data": rastreio.data_aplicacao,
                "instrumento": rastreio.instrumento.nome,
                "resultados": [result_against_cutoff(r) for r in rastreio.resultados]
            })

        return {
            "estudante": {"id": estudante.id, "nome": estudante.name, "serie": estudante.grade},
            "resultadosPorCategoria": por_categoria
        }


def get_statistics(db: Session) -> dict:
    with persistence_errors(db, "Erro ao calcular estatísticas de rastreio"):
        por_status = db.query(
            Screening.status, func.count(Screening.id)
        ).group_by(Screening.status).all()

        por_categoria = db.query(
            ScreeningInstrument.categoria, func.count(Screening.id)
        ).select_from(Screening).join(Screening.instrumento).group_by(
            ScreeningInstrument.categoria
        ).all()

        total = func.count(Screening.id).label("total")
        estudantes = db.query(
            Student.id, Student.name, total
        ).join(Screening, Screening.estudante_id == Student.id).group_by(
            Student.id, Student.name
        ).order_by(total.desc()).limit(5).all()

        return {
            "rastreiosPorStatus": [{"status": s, "total": n} for s, n in por_status],
            "rastreiosPorCategoria": [{"categoria": c, "total": n} for c, n in por_categoria],
            "estudantesComMaisRastreios": [
                {"estudanteId": i, "name": name, "total": n} for i, name, n in estudantes
            ]
        }
