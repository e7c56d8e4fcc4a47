"""
Router pour les membres : fiche, adhésions, anniversaires et carte QR.
"""

import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.member import (
    BirthdayResponse,
    MemberCreate,
    MemberResponse,
    MembershipCreate,
    MembershipResponse,
    MemberUpdate,
    MonthBirthdaysResponse,
)
from app.services import member_service, qr_service

router = APIRouter(prefix="/api/v1/members", tags=["Membres"])


@router.post("", response_model=MemberResponse, status_code=201, summary="Créer un membre")
def create_member(data: MemberCreate, db: Session = Depends(get_db)):
    return member_service.create_member(db, data)


@router.get("", response_model=List[MemberResponse], summary="Lister les membres")
def list_members(db: Session = Depends(get_db)):
    return member_service.get_members(db)


@router.get("/birthdays", response_model=BirthdayResponse, summary="Anniversaires du jour")
def get_birthdays(day: Optional[dt.date] = None, db: Session = Depends(get_db)):
    """Membres fêtant leur anniversaire à la date donnée (aujourd'hui par défaut)."""
    return member_service.get_birthdays(db, day or dt.date.today())


@router.get("/birthdays/month", response_model=MonthBirthdaysResponse, summary="Anniversaires du mois")
def get_month_birthdays(
    year: int = Query(..., ge=1900, le=2200),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
):
    return member_service.get_month_birthdays(db, year, month)


@router.delete("/memberships/{membership_id}", status_code=204, summary="Désactiver une adhésion")
def deactivate_membership(membership_id: int, db: Session = Depends(get_db)):
    if not member_service.deactivate_membership(db, membership_id):
        raise HTTPException(status_code=404, detail="Adhésion introuvable.")


@router.get("/{member_id}", response_model=MemberResponse, summary="Détail d'un membre")
def get_member(member_id: int, db: Session = Depends(get_db)):
    member = member_service.get_member(db, member_id)
    if member is None:
        raise HTTPException(status_code=404, detail="Membre introuvable.")
    return member


@router.put("/{member_id}", response_model=MemberResponse, summary="Modifier un membre")
def update_member(member_id: int, data: MemberUpdate, db: Session = Depends(get_db)):
    member = member_service.update_member(db, member_id, data)
    if member is None:
        raise HTTPException(status_code=404, detail="Membre introuvable.")
    return member


@router.post(
    "/{member_id}/memberships",
    response_model=MembershipResponse,
    status_code=201,
    summary="Inscrire un membre dans un ministère",
)
def add_membership(member_id: int, data: MembershipCreate, db: Session = Depends(get_db)):
    try:
        return member_service.add_membership(db, member_id, data)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{member_id}/qr", summary="Carte QR d'un membre (PNG)")
def get_member_qr(member_id: int, db: Session = Depends(get_db)):
    """QR code encodant nom, téléphone et date de naissance du membre."""
    try:
        png = qr_service.member_qr_image(db, member_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return Response(content=png, media_type="image/png")
