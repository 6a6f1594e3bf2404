from pydantic import BaseModel, Field, UUID4, field_validator, model_validator
from datetime import datetime, timezone
from typing import Optional, List
from models.enums import (
    TipoEvento,
    StatusEvento,
    StatusParticipante,
    CategoriaInstrumento,
    TipoIndicador,
    StatusRastreio,
    NivelRisco,
    StatusIntervencao,
    StatusMeta
)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Datas sem fuso são tratadas como UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _not_null(value, info):
    if value is None:
        raise ValueError(f"O campo {info.field_name} não pode ser nulo")
    return value


class RequestModel(BaseModel):
    """Base dos corpos de requisição: campos desconhecidos são rejeitados."""

    class Config:
        populate_by_name = True
        extra = "forbid"
        use_enum_values = True


# ---- Calendário ----

class CalendarEventCreate(RequestModel):
    """Requisição para criar um evento de calendário"""
    title: str = Field(..., min_length=1, description="Título do evento")
    description: Optional[str] = Field(None, description="Descrição do evento")
    start_date: datetime = Field(..., alias="startDate", description="Data e hora de início")
    end_date: Optional[datetime] = Field(None, alias="endDate", description="Data e hora de término")
    all_day: bool = Field(default=False, alias="allDay")
    location: Optional[str] = None
    type: TipoEvento
    status: StatusEvento = Field(default=StatusEvento.SCHEDULED, validate_default=True)
    color: Optional[str] = None
    recurrence: Optional[str] = Field(None, description="Padrão de recorrência (JSON)")
    creator_id: UUID4 = Field(..., alias="creatorId")
    participant_ids: Optional[List[UUID4]] = Field(None, alias="participantIds")
    school_id: Optional[UUID4] = Field(None, alias="schoolId")
    class_id: Optional[UUID4] = Field(None, alias="classId")
    lesson_plan_id: Optional[UUID4] = Field(None, alias="lessonPlanId")

    normalize_utc = field_validator("start_date", "end_date")(as_utc)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("A data de término não pode ser anterior à data de início")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Reunião de equipe RTI",
                "startDate": "2025-03-10T14:00:00Z",
                "endDate": "2025-03-10T15:00:00Z",
                "type": "meeting",
                "creatorId": "8f14e45f-ceea-4e7a-9b1c-2f5d1a0c6b7e",
                "participantIds": []
            }
        }


class CalendarEventUpdate(RequestModel):
    """Atualização parcial de um evento; só os campos enviados são aplicados"""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    start_date: Optional[datetime] = Field(None, alias="startDate")
    end_date: Optional[datetime] = Field(None, alias="endDate")
    all_day: Optional[bool] = Field(None, alias="allDay")
    location: Optional[str] = None
    type: Optional[TipoEvento] = None
    status: Optional[StatusEvento] = None
    color: Optional[str] = None
    recurrence: Optional[str] = None
    participant_ids: Optional[List[UUID4]] = Field(None, alias="participantIds")
    school_id: Optional[UUID4] = Field(None, alias="schoolId")
    class_id: Optional[UUID4] = Field(None, alias="classId")
    lesson_plan_id: Optional[UUID4] = Field(None, alias="lessonPlanId")

    required_fields = field_validator("title", "start_date", "all_day", "type", "status")(_not_null)
    normalize_utc = field_validator("start_date", "end_date")(as_utc)

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("A data de término não pode ser anterior à data de início")
        return self


class ParticipantStatusUpdate(RequestModel):
    status: StatusParticipante


# ---- Instrumentos e indicadores de rastreio ----

class ScreeningInstrumentCreate(RequestModel):
    """Requisição para criar um instrumento de rastreio"""
    nome: str = Field(..., min_length=1)
    descricao: str = Field(..., min_length=1)
    categoria: CategoriaInstrumento
    faixa_etaria: str = Field(..., min_length=1, alias="faixaEtaria", description="Ex.: 6-8 anos")
    tempo_aplicacao: str = Field(..., min_length=1, alias="tempoAplicacao", description="Ex.: 15-20 minutos")
    instrucoes: str = Field(..., min_length=1)
    ativo: bool = True


class ScreeningInstrumentUpdate(RequestModel):
    nome: Optional[str] = Field(None, min_length=1)
    descricao: Optional[str] = Field(None, min_length=1)
    categoria: Optional[CategoriaInstrumento] = None
    faixa_etaria: Optional[str] = Field(None, min_length=1, alias="faixaEtaria")
    tempo_aplicacao: Optional[str] = Field(None, min_length=1, alias="tempoAplicacao")
    instrucoes: Optional[str] = Field(None, min_length=1)
    ativo: Optional[bool] = None

    required_fields = field_validator(
        "nome", "descricao", "categoria", "faixa_etaria", "tempo_aplicacao", "instrucoes", "ativo"
    )(_not_null)


class ScreeningIndicatorCreate(RequestModel):
    """Requisição para adicionar um indicador a um instrumento"""
    nome: str = Field(..., min_length=1)
    descricao: str = Field(..., min_length=1)
    tipo: TipoIndicador
    valor_minimo: float = Field(..., alias="valorMinimo")
    valor_maximo: float = Field(..., alias="valorMaximo")
    ponto_corte: float = Field(..., alias="pontoCorte", description="Ponto de corte para intervenção")
    instrumento_id: UUID4 = Field(..., alias="instrumentoId")

    @model_validator(mode="after")
    def check_bounds(self):
        if self.valor_minimo > self.valor_maximo:
            raise ValueError("O valor mínimo não pode ser maior que o valor máximo")
        if not self.valor_minimo <= self.ponto_corte <= self.valor_maximo:
            raise ValueError("O ponto de corte deve estar entre o valor mínimo e o valor máximo")
        return self


# ---- Rastreios ----

class ScreeningCreate(RequestModel):
    """Requisição para registrar a aplicação de um instrumento a um estudante"""
    data_aplicacao: datetime = Field(..., alias="dataAplicacao")
    observacoes: Optional[str] = None
    status: StatusRastreio = Field(default=StatusRastreio.EM_ANDAMENTO, validate_default=True)
    estudante_id: UUID4 = Field(..., alias="estudanteId")
    aplicador_id: UUID4 = Field(..., alias="aplicadorId")
    instrumento_id: UUID4 = Field(..., alias="instrumentoId")

    normalize_utc = field_validator("data_aplicacao")(as_utc)


class ScreeningUpdate(RequestModel):
    data_aplicacao: Optional[datetime] = Field(None, alias="dataAplicacao")
    observacoes: Optional[str] = None
    status: Optional[StatusRastreio] = None

    required_fields = field_validator("data_aplicacao", "status")(_not_null)
    normalize_utc = field_validator("data_aplicacao")(as_utc)


# ---- Resultados de rastreio ----

class ScreeningResultCreate(RequestModel):
    valor: float
    nivel_risco: Optional[NivelRisco] = Field(None, alias="nivelRisco")
    observacoes: Optional[str] = None
    rastreio_id: UUID4 = Field(..., alias="rastreioId")
    indicador_id: UUID4 = Field(..., alias="indicadorId")


class ScreeningResultUpdate(RequestModel):
    valor: Optional[float] = None
    nivel_risco: Optional[NivelRisco] = Field(None, alias="nivelRisco")
    observacoes: Optional[str] = None

    required_fields = field_validator("valor")(_not_null)


class BatchResultItem(RequestModel):
    """Um resultado dentro do registro em lote de um rastreio"""
    indicador_id: UUID4 = Field(..., alias="indicadorId")
    valor: float
    nivel_risco: Optional[NivelRisco] = Field(None, alias="nivelRisco")
    observacoes: Optional[str] = None


# ---- Intervenções ----

class InterventionCreate(RequestModel):
    """Requisição para registrar uma intervenção com um estudante"""
    start_date: datetime = Field(..., alias="startDate")
    end_date: Optional[datetime] = Field(None, alias="endDate")
    type: str = Field(..., min_length=1, description="Ex.: Tutoria de leitura, Nível 2")
    description: str = Field(..., min_length=1)
    status: StatusIntervencao = Field(default=StatusIntervencao.ACTIVE, validate_default=True)
    notes: Optional[str] = None
    student_id: UUID4 = Field(..., alias="studentId")

    normalize_utc = field_validator("start_date", "end_date")(as_utc)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("A data de término não pode ser anterior à data de início")
        return self


class InterventionUpdate(RequestModel):
    start_date: Optional[datetime] = Field(None, alias="startDate")
    end_date: Optional[datetime] = Field(None, alias="endDate")
    type: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    status: Optional[StatusIntervencao] = None
    notes: Optional[str] = None
    student_id: Optional[UUID4] = Field(None, alias="studentId")

    required_fields = field_validator(
        "start_date", "type", "description", "status", "student_id"
    )(_not_null)
    normalize_utc = field_validator("start_date", "end_date")(as_utc)


# ---- Metas ----

class GoalCreate(RequestModel):
    """Requisição para criar uma meta de um estudante, opcionalmente ligada a uma intervenção"""
    titulo: str = Field(..., min_length=1)
    descricao: str = Field(..., min_length=1)
    criterio_sucesso: Optional[str] = Field(None, alias="criterioSucesso")
    prazo: datetime
    observacoes: Optional[str] = None
    estudante_id: UUID4 = Field(..., alias="estudanteId")
    intervencao_id: Optional[UUID4] = Field(None, alias="intervencaoId")

    normalize_utc = field_validator("prazo")(as_utc)


class GoalUpdate(RequestModel):
    titulo: Optional[str] = Field(None, min_length=1)
    descricao: Optional[str] = Field(None, min_length=1)
    criterio_sucesso: Optional[str] = Field(None, alias="criterioSucesso")
    prazo: Optional[datetime] = None
    observacoes: Optional[str] = None
    status: Optional[StatusMeta] = None
    progresso: Optional[int] = Field(None, ge=0, le=100)
    intervencao_id: Optional[UUID4] = Field(None, alias="intervencaoId")

    required_fields = field_validator("titulo", "descricao", "prazo", "status", "progresso")(_not_null)
    normalize_utc = field_validator("prazo")(as_utc)


class GoalProgressUpdate(RequestModel):
    progresso: int = Field(..., ge=0, le=100, description="Percentual de progresso (0 a 100)")
    observacoes: Optional[str] = None


class GoalCancel(RequestModel):
    observacoes: Optional[str] = None
