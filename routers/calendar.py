from datetime import datetime
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from database.database import get_db
from models.schemas import CalendarEventCreate, CalendarEventUpdate, ParticipantStatusUpdate
from services import calendar_service

router = APIRouter(
    prefix="/calendar",
    tags=["Calendário"]
)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_event(request: CalendarEventCreate, db: Session = Depends(get_db)):
    return calendar_service.create_event(db, request)


@router.get("")
def list_events(db: Session = Depends(get_db)):
    return calendar_service.list_events(db)


@router.get("/user/{user_id}")
def list_events_by_user(user_id: UUID, db: Session = Depends(get_db)):
    return calendar_service.list_events_by_user(db, user_id)


@router.get("/date-range")
def list_events_by_date_range(
    start_date: datetime = Query(..., alias="startDate"),
    end_date: datetime = Query(..., alias="endDate"),
    db: Session = Depends(get_db)
):
    return calendar_service.list_events_by_date_range(db, start_date, end_date)


@router.get("/{event_id}")
def get_event(event_id: UUID, db: Session = Depends(get_db)):
    return calendar_service.get_event(db, event_id)


@router.patch("/{event_id}")
def update_event(event_id: UUID, request: CalendarEventUpdate, db: Session = Depends(get_db)):
    return calendar_service.update_event(db, event_id, request)


@router.delete("/{event_id}")
def remove_event(event_id: UUID, db: Session = Depends(get_db)):
    return calendar_service.remove_event(db, event_id)


@router.patch("/{event_id}/participants/{user_id}/status")
def update_participant_status(
    event_id: UUID,
    user_id: UUID,
    request: ParticipantStatusUpdate,
    db: Session = Depends(get_db)
):
    return calendar_service.update_participant_status(db, event_id, user_id, request.status)
