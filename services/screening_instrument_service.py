import logging
from typing import List
from uuid import UUID
from sqlalchemy.orm import Session, selectinload
from database.models import ScreeningInstrument, ScreeningIndicator, Screening, ScreeningResult
from models.schemas import ScreeningInstrumentCreate, ScreeningInstrumentUpdate, ScreeningIndicatorCreate
from services.exceptions import NotFoundError, ConflictError, persistence_errors

logger = logging.getLogger(__name__)


def serialize_indicator(indicador: ScreeningIndicator) -> dict:
    return {
        "id": indicador.id,
        "nome": indicador.nome,
        "descricao": indicador.descricao,
        "tipo": indicador.tipo,
        "valorMinimo": indicador.valor_minimo,
        "valorMaximo": indicador.valor_maximo,
        "pontoCorte": indicador.ponto_corte,
        "instrumentoId": indicador.instrumento_id,
        "createdAt": indicador.criado_em
    }


def serialize_instrument(instrumento: ScreeningInstrument) -> dict:
    return {
        "id": instrumento.id,
        "nome": instrumento.nome,
        "descricao": instrumento.descricao,
        "categoria": instrumento.categoria,
        "faixaEtaria": instrumento.faixa_etaria,
        "tempoAplicacao": instrumento.tempo_aplicacao,
        "instrucoes": instrumento.instrucoes,
        "ativo": instrumento.ativo,
        "createdAt": instrumento.criado_em,
        "updatedAt": instrumento.atualizado_em
    }


def _with_indicator_summary(instrumento: ScreeningInstrument) -> dict:
    return {
        **serialize_instrument(instrumento),
        "indicadores": [
            {"id": i.id, "nome": i.nome, "tipo": i.tipo}
            for i in instrumento.indicadores
        ]
    }


def _get_instrument_or_404(db: Session, instrumento_id: UUID) -> ScreeningInstrument:
    instrumento = db.query(ScreeningInstrument).options(
        selectinload(ScreeningInstrument.indicadores),
        selectinload(ScreeningInstrument.rastreios).selectinload(Screening.estudante)
    ).filter(ScreeningInstrument.id == instrumento_id).first()

    if not instrumento:
        raise NotFoundError("Instrumento de rastreio não encontrado")
    return instrumento


def create_instrument(db: Session, dto: ScreeningInstrumentCreate) -> dict:
    with persistence_errors(db, "Erro ao criar instrumento de rastreio"):
        instrumento = ScreeningInstrument(**dto.model_dump())
        db.add(instrumento)
        db.commit()
        db.refresh(instrumento)

    logger.info("Instrumento %s criado", instrumento.id)
    return serialize_instrument(instrumento)


def list_instruments(db: Session, include_inactive: bool = False) -> List[dict]:
    with persistence_errors(db, "Erro ao buscar instrumentos de rastreio"):
        query = db.query(ScreeningInstrument).options(selectinload(ScreeningInstrument.indicadores))
        if not include_inactive:
            query = query.filter(ScreeningInstrument.ativo.is_(True))

        instrumentos = query.order_by(ScreeningInstrument.nome.asc()).all()
        return [_with_indicator_summary(i) for i in instrumentos]


def get_instrument(db: Session, instrumento_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao buscar instrumento de rastreio"):
        instrumento = _get_instrument_or_404(db, instrumento_id)
        return {
            **serialize_instrument(instrumento),
            "indicadores": [serialize_indicator(i) for i in instrumento.indicadores],
            "rastreios": [
                {
                    "id": r.id,
                    "dataAplicacao": r.data_aplicacao,
                    "status": r.status,
                    "estudante": {
                        "id": r.estudante.id,
                        "name": r.estudante.name,
                        "grade": r.estudante.grade
                    }
                }
                for r in instrumento.rastreios
            ]
        }


def update_instrument(db: Session, instrumento_id: UUID, dto: ScreeningInstrumentUpdate) -> dict:
    data = dto.model_dump(exclude_unset=True)

    with persistence_errors(db, "Erro ao atualizar instrumento de rastreio"):
        instrumento = _get_instrument_or_404(db, instrumento_id)
        for field, value in data.items():
            setattr(instrumento, field, value)
        db.commit()
        db.refresh(instrumento)

        logger.info("Instrumento %s atualizado (%s)", instrumento_id, ", ".join(data) or "sem alterações")
        return _with_indicator_summary(instrumento)


def remove_instrument(db: Session, instrumento_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao remover instrumento de rastreio"):
        instrumento = _get_instrument_or_404(db, instrumento_id)

        total_rastreios = db.query(Screening).filter(
            Screening.instrumento_id == instrumento_id
        ).count()

        if total_rastreios > 0:
            # Instrumento já aplicado: apenas desativa
            instrumento.ativo = False
            db.commit()
            db.refresh(instrumento)
            logger.info(
                "Instrumento %s desativado (%d rastreio(s) associados)", instrumento_id, total_rastreios
            )
            return serialize_instrument(instrumento)

        for indicador in list(instrumento.indicadores):
            db.delete(indicador)
        db.delete(instrumento)
        db.commit()

    logger.info("Instrumento %s removido com seus indicadores", instrumento_id)
    return {"message": "Instrumento de rastreio removido com sucesso"}


def add_indicator(db: Session, dto: ScreeningIndicatorCreate) -> dict:
    with persistence_errors(db, "Erro ao adicionar indicador"):
        _get_instrument_or_404(db, dto.instrumento_id)

        indicador = ScreeningIndicator(**dto.model_dump())
        db.add(indicador)
        db.commit()
        db.refresh(indicador)

    logger.info("Indicador %s adicionado ao instrumento %s", indicador.id, dto.instrumento_id)
    return serialize_indicator(indicador)


def list_indicators(db: Session, instrumento_id: UUID) -> List[dict]:
    with persistence_errors(db, "Erro ao buscar indicadores"):
        _get_instrument_or_404(db, instrumento_id)

        indicadores = db.query(ScreeningIndicator).filter(
            ScreeningIndicator.instrumento_id == instrumento_id
        ).order_by(ScreeningIndicator.nome.asc()).all()
        return [serialize_indicator(i) for i in indicadores]


def get_indicator(db: Session, indicador_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao buscar indicador"):
        indicador = db.get(ScreeningIndicator, indicador_id)
        if not indicador:
            raise NotFoundError("Indicador de rastreio não encontrado")

        return {
            **serialize_indicator(indicador),
            "instrumento": {
                "id": indicador.instrumento.id,
                "nome": indicador.instrumento.nome,
                "categoria": indicador.instrumento.categoria
            }
        }


def remove_indicator(db: Session, indicador_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao remover indicador"):
        indicador = db.get(ScreeningIndicator, indicador_id)
        if not indicador:
            raise NotFoundError("Indicador de rastreio não encontrado")

        total_resultados = db.query(ScreeningResult).filter(
            ScreeningResult.indicador_id == indicador_id
        ).count()

        if total_resultados > 0:
            raise ConflictError(
                "Não é possível remover este indicador pois existem resultados associados"
            )

        db.delete(indicador)
        db.commit()

    logger.info("Indicador %s removido", indicador_id)
    return {"message": "Indicador de rastreio removido com sucesso"}
