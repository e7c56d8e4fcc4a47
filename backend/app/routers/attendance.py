"""
Router pour les feuilles d'appel.
Création par round, suppression, saisie des statuts, roster groupé et statistiques du mois.
"""

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.attendance import (
    AvailableRoundsResponse,
    MonthlyStatistics,
    RosterResponse,
    SheetCreate,
    SheetResponse,
    StatusUpdate,
    StatusUpdateResult,
)
from app.services import attendance_service
from app.state import AppState, get_app_state

router = APIRouter(prefix="/api/v1/attendance", tags=["Appels"])


@router.get("/rounds", response_model=AvailableRoundsResponse, summary="Rounds disponibles")
def available_rounds(
    ministry_id: int,
    attendance_date: dt.date,
    db: Session = Depends(get_db),
):
    """Rounds (1 à 3) pas encore utilisés pour ce ministère à cette date."""
    return attendance_service.available_rounds(db, ministry_id, attendance_date)


@router.post("/sheets", response_model=SheetResponse, status_code=201, summary="Créer une feuille d'appel")
def create_sheet(data: SheetCreate, db: Session = Depends(get_db)):
    """Crée une ligne "absent" par membre actif du ministère. Un round ne peut être utilisé qu'une fois."""
    try:
        return attendance_service.create_sheet(db, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/sheets", status_code=204, summary="Supprimer une feuille d'appel")
def delete_sheet(
    ministry_id: int,
    attendance_date: dt.date,
    round: str = Query("1", pattern="^[1-3]$"),
    db: Session = Depends(get_db),
):
    """Bloqué si la feuille est déjà confirmée."""
    try:
        deleted = attendance_service.delete_sheet(db, ministry_id, attendance_date, round)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Feuille d'appel introuvable.")


@router.put("/status", response_model=StatusUpdateResult, summary="Saisir le statut des lignes cochées")
def update_statuses(data: StatusUpdate, db: Session = Depends(get_db)):
    try:
        return attendance_service.update_statuses(db, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/roster", response_model=RosterResponse, summary="Roster groupé d'une date")
def get_roster(
    attendance_date: dt.date,
    state: AppState = Depends(get_app_state),
    db: Session = Depends(get_db),
):
    """
    Lignes d'appel d'une date regroupées par ministère → round → pupitre ou année → classe,
    avec les compteurs de présence. Filtré sur le ministère actif s'il est fourni.
    """
    return attendance_service.get_roster(db, attendance_date, state.active_ministry_id)


@router.get("/statistics", response_model=MonthlyStatistics, summary="Statistiques du mois")
def get_monthly_statistics(
    year: int = Query(..., ge=1900, le=2200),
    month: int = Query(..., ge=1, le=12),
    state: AppState = Depends(get_app_state),
    db: Session = Depends(get_db),
):
    return attendance_service.get_monthly_statistics(db, year, month, state.active_ministry_id)
