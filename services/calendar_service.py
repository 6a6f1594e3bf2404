import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, selectinload
from database.models import (
    CalendarEvent,
    CalendarEventParticipant,
    User,
    School,
    SchoolClass,
    LessonPlan
)
from models.enums import StatusParticipante
from models.schemas import CalendarEventCreate, CalendarEventUpdate, as_utc
from services.exceptions import NotFoundError, DomainValidationError, persistence_errors

logger = logging.getLogger(__name__)

EVENT_COLUMNS = [
    "title", "description", "start_date", "end_date", "all_day", "location",
    "type", "status", "color", "recurrence", "school_id", "class_id", "lesson_plan_id"
]


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role
    }


def serialize_participant(participant: CalendarEventParticipant) -> dict:
    return {
        "id": participant.id,
        "eventId": participant.event_id,
        "userId": participant.user_id,
        "status": participant.status,
        "user": serialize_user(participant.user)
    }


def serialize_event(event: CalendarEvent) -> dict:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "startDate": event.start_date,
        "endDate": event.end_date,
        "allDay": event.all_day,
        "location": event.location,
        "type": event.type,
        "status": event.status,
        "color": event.color,
        "recurrence": event.recurrence,
        "creatorId": event.creator_id,
        "schoolId": event.school_id,
        "classId": event.class_id,
        "lessonPlanId": event.lesson_plan_id,
        "createdAt": event.criado_em,
        "updatedAt": event.atualizado_em,
        "creator": serialize_user(event.creator),
        "participants": [serialize_participant(p) for p in event.participants],
        "school": {"id": event.school.id, "name": event.school.name} if event.school else None,
        "class": {
            "id": event.school_class.id,
            "name": event.school_class.name,
            "grade": event.school_class.grade
        } if event.school_class else None,
        "lessonPlan": {
            "id": event.lesson_plan.id,
            "title": event.lesson_plan.title
        } if event.lesson_plan else None
    }


def _event_query(db: Session):
    return db.query(CalendarEvent).options(
        selectinload(CalendarEvent.creator),
        selectinload(CalendarEvent.participants).selectinload(CalendarEventParticipant.user),
        selectinload(CalendarEvent.school),
        selectinload(CalendarEvent.school_class),
        selectinload(CalendarEvent.lesson_plan)
    )


def _get_event_or_404(db: Session, event_id: UUID) -> CalendarEvent:
    event = _event_query(db).filter(CalendarEvent.id == event_id).first()
    if not event:
        raise NotFoundError(f"Evento com ID {event_id} não encontrado")
    return event


def _check_references(db: Session, data: dict):
    references = [
        ("creator_id", User, "Usuário criador"),
        ("school_id", School, "Escola"),
        ("class_id", SchoolClass, "Turma"),
        ("lesson_plan_id", LessonPlan, "Plano de aula"),
    ]
    for field, model, label in references:
        ref_id = data.get(field)
        if ref_id is not None and db.get(model, ref_id) is None:
            raise NotFoundError(f"{label} com ID {ref_id} não encontrado")


def _check_participants(db: Session, participant_ids: List[UUID]):
    unique_ids = set(participant_ids)
    found = {
        user_id for (user_id,) in db.query(User.id).filter(User.id.in_(unique_ids)).all()
    }
    missing = [str(user_id) for user_id in participant_ids if user_id not in found]
    if missing:
        raise NotFoundError(f"Participantes não encontrados: {', '.join(missing)}")


def _add_participants(db: Session, event_id: UUID, participant_ids: List[UUID]):
    # Ids repetidos geram um único participante
    for user_id in dict.fromkeys(participant_ids):
        db.add(CalendarEventParticipant(
            event_id=event_id,
            user_id=user_id,
            status=StatusParticipante.PENDING.value
        ))


def create_event(db: Session, dto: CalendarEventCreate) -> dict:
    data = dto.model_dump(exclude={"participant_ids"})
    participant_ids = dto.participant_ids or []

    with persistence_errors(db, "Erro ao criar evento"):
        _check_references(db, data)
        if participant_ids:
            _check_participants(db, participant_ids)

        event = CalendarEvent(**data)
        db.add(event)
        db.flush()

        _add_participants(db, event.id, participant_ids)
        db.commit()

    logger.info("Evento %s criado com %d participante(s)", event.id, len(set(participant_ids)))
    return get_event(db, event.id)


def list_events(db: Session) -> List[dict]:
    with persistence_errors(db, "Erro ao buscar eventos"):
        events = _event_query(db).order_by(CalendarEvent.start_date).all()
        return [serialize_event(event) for event in events]


def get_event(db: Session, event_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao buscar evento"):
        return serialize_event(_get_event_or_404(db, event_id))


def list_events_by_user(db: Session, user_id: UUID) -> List[dict]:
    with persistence_errors(db, "Erro ao buscar eventos do usuário"):
        created = _event_query(db).filter(
            CalendarEvent.creator_id == user_id
        ).order_by(CalendarEvent.start_date).all()

        participating = _event_query(db).filter(
            CalendarEvent.participants.any(CalendarEventParticipant.user_id == user_id)
        ).order_by(CalendarEvent.start_date).all()

        # Eventos criados primeiro, depois os de participação ainda não vistos
        events = list(created)
        seen = {event.id for event in created}
        for event in participating:
            if event.id not in seen:
                events.append(event)
                seen.add(event.id)

        return [serialize_event(event) for event in events]


def list_events_by_date_range(db: Session, start: datetime, end: datetime) -> List[dict]:
    start, end = as_utc(start), as_utc(end)
    if start > end:
        raise DomainValidationError("A data inicial não pode ser posterior à data final")

    with persistence_errors(db, "Erro ao buscar eventos por intervalo de datas"):
        events = _event_query(db).filter(
            or_(
                CalendarEvent.start_date.between(start, end),
                CalendarEvent.end_date.between(start, end),
                and_(CalendarEvent.start_date < start, CalendarEvent.end_date > end)
            )
        ).order_by(CalendarEvent.start_date).all()
        return [serialize_event(event) for event in events]


def update_event(db: Session, event_id: UUID, dto: CalendarEventUpdate) -> dict:
    data = dto.model_dump(exclude_unset=True)
    participant_ids: Optional[List[UUID]] = data.pop("participant_ids", None)
    replace_participants = "participant_ids" in dto.model_fields_set and participant_ids is not None

    with persistence_errors(db, "Erro ao atualizar evento"):
        event = _get_event_or_404(db, event_id)
        _check_references(db, data)

        start_date = as_utc(data.get("start_date", event.start_date))
        end_date = as_utc(data.get("end_date", event.end_date))
        if end_date is not None and end_date < start_date:
            raise DomainValidationError("A data de término não pode ser anterior à data de início")

        for field, value in data.items():
            if field in EVENT_COLUMNS:
                setattr(event, field, value)

        if replace_participants:
            if participant_ids:
                _check_participants(db, participant_ids)
            db.query(CalendarEventParticipant).filter(
                CalendarEventParticipant.event_id == event_id
            ).delete(synchronize_session=False)
            _add_participants(db, event_id, participant_ids)

        db.commit()

    logger.info("Evento %s atualizado", event_id)
    return get_event(db, event_id)


def remove_event(db: Session, event_id: UUID) -> dict:
    with persistence_errors(db, "Erro ao remover evento"):
        event = db.get(CalendarEvent, event_id)
        if not event:
            raise NotFoundError(f"Evento com ID {event_id} não encontrado")

        db.query(CalendarEventParticipant).filter(
            CalendarEventParticipant.event_id == event_id
        ).delete(synchronize_session=False)
        db.delete(event)
        db.commit()

    logger.info("Evento %s removido", event_id)
    return {"message": "Evento removido com sucesso"}


def update_participant_status(db: Session, event_id: UUID, user_id: UUID, status: str) -> dict:
    with persistence_errors(db, "Erro ao atualizar status do participante"):
        participant = db.query(CalendarEventParticipant).filter(
            CalendarEventParticipant.event_id == event_id,
            CalendarEventParticipant.user_id == user_id
        ).first()

        if not participant:
            raise NotFoundError(
                f"Participante não encontrado para o evento {event_id} e usuário {user_id}"
            )

        participant.status = status
        db.commit()
        db.refresh(participant)

        event = participant.event
        return {
            **serialize_participant(participant),
            "event": {
                "id": event.id,
                "title": event.title,
                "startDate": event.start_date,
                "endDate": event.end_date,
                "type": event.type,
                "status": event.status
            }
        }
