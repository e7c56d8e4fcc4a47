"""
Router pour le calendrier des chants et événements.
"""

import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.schemas.calendar import CalendarEntryCreate, CalendarEntryResponse, UpcomingResponse
from app.services import calendar_service
from app.state import AppState, get_app_state

router = APIRouter(prefix="/api/v1/calendar", tags=["Calendrier"])


@router.post("", response_model=CalendarEntryResponse, status_code=201, summary="Créer une entrée")
def create_entry(data: CalendarEntryCreate = Body(...), db: Session = Depends(get_db)):
    """Le champ `type` détermine les champs attendus : single-link, four-part-link ou text."""
    return calendar_service.create_entry(db, data)


@router.get("", response_model=List[CalendarEntryResponse], summary="Lister les entrées")
def list_entries(state: AppState = Depends(get_app_state), db: Session = Depends(get_db)):
    return calendar_service.get_entries(db, state.active_ministry_id)


@router.get("/upcoming", response_model=UpcomingResponse, summary="Entrées de la semaine à venir")
def get_upcoming(
    today: Optional[dt.date] = None,
    days: int = Query(settings.UPCOMING_DAYS, ge=0, le=62),
    db: Session = Depends(get_db),
):
    """Entrées d'aujourd'hui à aujourd'hui + days (inclus), regroupées par ministère."""
    return calendar_service.get_upcoming(db, today or dt.date.today(), days)


@router.get("/{entry_id}", response_model=CalendarEntryResponse, summary="Détail d'une entrée")
def get_entry(entry_id: int, db: Session = Depends(get_db)):
    entry = calendar_service.get_entry(db, entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Entrée introuvable.")
    return entry


@router.put("/{entry_id}", response_model=CalendarEntryResponse, summary="Modifier une entrée")
def update_entry(entry_id: int, data: CalendarEntryCreate = Body(...), db: Session = Depends(get_db)):
    entry = calendar_service.update_entry(db, entry_id, data)
    if entry is None:
        raise HTTPException(status_code=404, detail="Entrée introuvable.")
    return entry


@router.delete("/{entry_id}", status_code=204, summary="Supprimer une entrée")
def delete_entry(entry_id: int, db: Session = Depends(get_db)):
    if not calendar_service.delete_entry(db, entry_id):
        raise HTTPException(status_code=404, detail="Entrée introuvable.")
