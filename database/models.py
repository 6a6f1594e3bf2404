import uuid
from sqlalchemy import (
    Column, String, DateTime, Date, ForeignKey, Text, Boolean, Float, Integer, Uuid, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator
from datetime import datetime, timezone
from database.database import Base
from models.enums import StatusEvento, StatusParticipante, StatusRastreio, StatusIntervencao, StatusMeta


class UTCDateTime(TypeDecorator):
    """Grava datas em UTC e as devolve sempre com fuso, mesmo no SQLite."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    email = Column(String(200), unique=True, nullable=False, index=True)
    role = Column(String(50), nullable=False, default="TEACHER")
    criado_em = Column(UTCDateTime, default=datetime.utcnow)


class School(Base):
    __tablename__ = "schools"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)

    classes = relationship("SchoolClass", back_populates="school")


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    grade = Column(String(50), nullable=True)
    school_id = Column(Uuid, ForeignKey("schools.id"), nullable=True)

    school = relationship("School", back_populates="classes")


class LessonPlan(Base):
    __tablename__ = "lesson_plans"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    grade = Column(String(50), nullable=True)
    date_of_birth = Column(Date, nullable=True)

    rastreios = relationship("Screening", back_populates="estudante")
    intervencoes = relationship("Intervention", back_populates="estudante")
    metas = relationship("Goal", back_populates="estudante")


class CalendarEvent(Base):
    __tablename__ = "calendar_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(UTCDateTime, nullable=False, index=True)
    end_date = Column(UTCDateTime, nullable=True, index=True)
    all_day = Column(Boolean, nullable=False, default=False)
    location = Column(String(200), nullable=True)
    type = Column(String(30), nullable=False)
    status = Column(String(30), nullable=False, default=StatusEvento.SCHEDULED.value)
    color = Column(String(30), nullable=True)
    recurrence = Column(Text, nullable=True)

    creator_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    school_id = Column(Uuid, ForeignKey("schools.id"), nullable=True)
    class_id = Column(Uuid, ForeignKey("classes.id"), nullable=True)
    lesson_plan_id = Column(Uuid, ForeignKey("lesson_plans.id"), nullable=True)

    criado_em = Column(UTCDateTime, default=datetime.utcnow)
    atualizado_em = Column(UTCDateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("User")
    school = relationship("School")
    school_class = relationship("SchoolClass")
    lesson_plan = relationship("LessonPlan")
    participants = relationship(
        "CalendarEventParticipant",
        back_populates="event",
        order_by="CalendarEventParticipant.criado_em"
    )


class CalendarEventParticipant(Base):
    __tablename__ = "calendar_event_participants"
    __table_args__ = (UniqueConstraint("event_id", "user_id"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("calendar_events.id"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    status = Column(String(30), nullable=False, default=StatusParticipante.PENDING.value)
    criado_em = Column(UTCDateTime, default=datetime.utcnow)

    event = relationship("CalendarEvent", back_populates="participants")
    user = relationship("User")


class ScreeningInstrument(Base):
    __tablename__ = "screening_instruments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    nome = Column(String(200), nullable=False, index=True)
    descricao = Column(Text, nullable=False)
    categoria = Column(String(30), nullable=False)
    faixa_etaria = Column(String(50), nullable=False)
    tempo_aplicacao = Column(String(50), nullable=False)
    instrucoes = Column(Text, nullable=False)
    ativo = Column(Boolean, nullable=False, default=True)
    criado_em = Column(UTCDateTime, default=datetime.utcnow)
    atualizado_em = Column(UTCDateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    indicadores = relationship(
        "ScreeningIndicator",
        back_populates="instrumento",
        order_by="ScreeningIndicator.nome"
    )
    rastreios = relationship("Screening", back_populates="instrumento")


class ScreeningIndicator(Base):
    __tablename__ = "screening_indicators"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    nome = Column(String(200), nullable=False)
    descricao = Column(Text, nullable=False)
    tipo = Column(String(30), nullable=False)
    valor_minimo = Column(Float, nullable=False)
    valor_maximo = Column(Float, nullable=False)
    ponto_corte = Column(Float, nullable=False)
    instrumento_id = Column(Uuid, ForeignKey("screening_instruments.id"), nullable=False, index=True)
    criado_em = Column(UTCDateTime, default=datetime.utcnow)

    instrumento = relationship("ScreeningInstrument", back_populates="indicadores")
    resultados = relationship("ScreeningResult", back_populates="indicador")


class Screening(Base):
    __tablename__ = "screenings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    data_aplicacao = Column(UTCDateTime, nullable=False)
    observacoes = Column(Text, nullable=True)
    status = Column(String(30), nullable=False, default=StatusRastreio.EM_ANDAMENTO.value)
    estudante_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)
    aplicador_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    instrumento_id = Column(Uuid, ForeignKey("screening_instruments.id"), nullable=False, index=True)
    criado_em = Column(UTCDateTime, default=datetime.utcnow)
    atualizado_em = Column(UTCDateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    estudante = relationship("Student", back_populates="rastreios")
    aplicador = relationship("User")
    instrumento = relationship("ScreeningInstrument", back_populates="rastreios")
    resultados = relationship("ScreeningResult", back_populates="rastreio")


class ScreeningResult(Base):
    __tablename__ = "screening_results"
    __table_args__ = (UniqueConstraint("rastreio_id", "indicador_id"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    valor = Column(Float, nullable=False)
    nivel_risco = Column(String(30), nullable=True)
    observacoes = Column(Text, nullable=True)
    rastreio_id = Column(Uuid, ForeignKey("screenings.id"), nullable=False, index=True)
    indicador_id = Column(Uuid, ForeignKey("screening_indicators.id"), nullable=False, index=True)
    criado_em = Column(UTCDateTime, default=datetime.utcnow)
    atualizado_em = Column(UTCDateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    rastreio = relationship("Screening", back_populates="resultados")
    indicador = relationship("ScreeningIndicator", back_populates="resultados")


class Intervention(Base):
    __tablename__ = "interventions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    start_date = Column(UTCDateTime, nullable=False)
    end_date = Column(UTCDateTime, nullable=True)
    type = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(30), nullable=False, default=StatusIntervencao.ACTIVE.value, index=True)
    notes = Column(Text, nullable=True)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)
    criado_em = Column(UTCDateTime, default=datetime.utcnow)
    atualizado_em = Column(UTCDateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    estudante = relationship("Student", back_populates="intervencoes")
    metas = relationship("Goal", back_populates="intervencao")


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    titulo = Column(String(200), nullable=False)
    descricao = Column(Text, nullable=False)
    criterio_sucesso = Column(Text, nullable=True)
    prazo = Column(UTCDateTime, nullable=False)
    observacoes = Column(Text, nullable=True)
    status = Column(String(30), nullable=False, default=StatusMeta.NAO_INICIADA.value)
    progresso = Column(Integer, nullable=False, default=0)
    estudante_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)
    intervencao_id = Column(Uuid, ForeignKey("interventions.id"), nullable=True, index=True)
    criado_em = Column(UTCDateTime, default=datetime.utcnow)
    atualizado_em = Column(UTCDateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    estudante = relationship("Student", back_populates="metas")
    intervencao = relationship("Intervention", back_populates="metas")
    historico = relationship(
        "GoalHistory",
        back_populates="meta",
        order_by="GoalHistory.data.desc()"
    )


class GoalHistory(Base):
    __tablename__ = "goal_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    data = Column(UTCDateTime, nullable=False, default=datetime.utcnow)
    status = Column(String(30), nullable=False)
    progresso = Column(Integer, nullable=False)
    observacoes = Column(Text, nullable=True)
    goal_id = Column(Uuid, ForeignKey("goals.id"), nullable=False, index=True)

    meta = relationship("Goal", back_populates="historico")
