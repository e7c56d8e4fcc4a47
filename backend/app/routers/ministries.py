"""
Router pour les ministères (chorales, écoles du dimanche, ...).
"""

import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.member import MinistryCreate, MinistryResponse, RosterMember
from app.services import member_service

router = APIRouter(prefix="/api/v1/ministries", tags=["Ministères"])


@router.post("", response_model=MinistryResponse, status_code=201, summary="Créer un ministère")
def create_ministry(data: MinistryCreate, db: Session = Depends(get_db)):
    try:
        return member_service.create_ministry(db, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("", response_model=List[MinistryResponse], summary="Lister les ministères")
def list_ministries(db: Session = Depends(get_db)):
    return member_service.get_ministries(db)


@router.get("/{ministry_id}/members", response_model=List[RosterMember], summary="Membres d'un ministère")
def get_ministry_members(ministry_id: int, year: Optional[int] = None, db: Session = Depends(get_db)):
    """Membres actifs pour l'année donnée (année courante par défaut)."""
    return member_service.get_ministry_members(db, ministry_id, year or dt.date.today().year)
