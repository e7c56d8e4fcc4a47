"""
Router pour les rencontres de petits groupes (party) et les réponses des membres.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.party import (
    PartyAttendanceCreate,
    PartyCreate,
    PartyMemberResponse,
    PartyResponse,
    PartySummary,
    PartyUpdate,
)
from app.services import party_service

router = APIRouter(prefix="/api/v1/parties", tags=["Rencontres"])


@router.post("", response_model=PartyResponse, status_code=201, summary="Créer une rencontre")
def create_party(data: PartyCreate, db: Session = Depends(get_db)):
    return party_service.create_party(db, data)


@router.get("", response_model=List[PartyResponse], summary="Lister les rencontres")
def list_parties(db: Session = Depends(get_db)):
    return party_service.get_parties(db)


@router.get("/{party_id}", response_model=PartyResponse, summary="Détail d'une rencontre")
def get_party(party_id: int, db: Session = Depends(get_db)):
    party = party_service.get_party(db, party_id)
    if party is None:
        raise HTTPException(status_code=404, detail="Rencontre introuvable.")
    return party


@router.put("/{party_id}", response_model=PartyResponse, summary="Modifier une rencontre")
def update_party(party_id: int, data: PartyUpdate, db: Session = Depends(get_db)):
    try:
        party = party_service.update_party(db, party_id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if party is None:
        raise HTTPException(status_code=404, detail="Rencontre introuvable.")
    return party


@router.delete("/{party_id}", status_code=204, summary="Supprimer une rencontre")
def delete_party(party_id: int, db: Session = Depends(get_db)):
    if not party_service.delete_party(db, party_id):
        raise HTTPException(status_code=404, detail="Rencontre introuvable.")


@router.post(
    "/{party_id}/attendance",
    response_model=PartyMemberResponse,
    summary="Répondre à une rencontre",
)
def record_attendance(party_id: int, data: PartyAttendanceCreate, db: Session = Depends(get_db)):
    """La réponse est vérifiée avec les 4 derniers chiffres du téléphone du membre."""
    try:
        return party_service.record_party_attendance(db, party_id, data)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.get("/{party_id}/members", response_model=List[PartyMemberResponse], summary="Réponses des membres")
def get_party_members(party_id: int, db: Session = Depends(get_db)):
    return party_service.get_party_members(db, party_id)


@router.get("/{party_id}/summary", response_model=PartySummary, summary="Compteurs de réponses")
def get_party_summary(party_id: int, db: Session = Depends(get_db)):
    return party_service.get_party_summary(db, party_id)
