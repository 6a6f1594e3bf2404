from enum import Enum


class TipoEvento(str, Enum):
    MEETING = "meeting"
    LESSON = "lesson"
    ASSESSMENT = "assessment"
    INTERVENTION = "intervention"
    PERSONAL = "personal"


class StatusEvento(str, Enum):
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class StatusParticipante(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class CategoriaInstrumento(str, Enum):
    ACADEMICO = "ACADEMICO"
    COMPORTAMENTAL = "COMPORTAMENTAL"
    SOCIOEMOCIONAL = "SOCIOEMOCIONAL"
    LINGUAGEM = "LINGUAGEM"
    COGNITIVO = "COGNITIVO"
    MOTOR = "MOTOR"
    ATENCAO = "ATENCAO"
    OUTRO = "OUTRO"


class TipoIndicador(str, Enum):
    ESCALA_LIKERT = "ESCALA_LIKERT"
    SIM_NAO = "SIM_NAO"
    NUMERICO = "NUMERICO"
    PERCENTUAL = "PERCENTUAL"
    FREQUENCIA = "FREQUENCIA"


class StatusRastreio(str, Enum):
    AGENDADO = "AGENDADO"
    EM_ANDAMENTO = "EM_ANDAMENTO"
    CONCLUIDO = "CONCLUIDO"
    CANCELADO = "CANCELADO"


class NivelRisco(str, Enum):
    BAIXO = "BAIXO"
    MODERADO = "MODERADO"
    ALTO = "ALTO"
    MUITO_ALTO = "MUITO_ALTO"


class StatusIntervencao(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class StatusMeta(str, Enum):
    NAO_INICIADA = "NAO_INICIADA"
    EM_ANDAMENTO = "EM_ANDAMENTO"
    CONCLUIDA = "CONCLUIDA"
    CANCELADA = "CANCELADA"
