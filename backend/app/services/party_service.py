"""
Service métier pour les rencontres de petits groupes (party) et les réponses des membres.
"""

import logging
import re
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.member import Member
from app.models.party import Party, PartyMember
from app.schemas.party import PartyAttendanceCreate, PartyCreate, PartySummary, PartyUpdate

logger = logging.getLogger(__name__)


def create_party(db: Session, data: PartyCreate) -> Party:
    party = Party(**data.model_dump())
    db.add(party)
    db.commit()
    db.refresh(party)
    logger.info("Rencontre créée : %s (%s, %s)", party.title, party.id, party.party_date)
    return party


def get_parties(db: Session) -> List[Party]:
    """Rencontres de la plus récente à la plus ancienne."""
    return db.execute(
        select(Party).order_by(Party.party_date.desc(), Party.id.desc())
    ).scalars().all()


def get_party(db: Session, party_id: int) -> Optional[Party]:
    return db.get(Party, party_id)


def update_party(db: Session, party_id: int, data: PartyUpdate) -> Optional[Party]:
    """Met à jour les champs fournis. Lève ValueError si la période devient incohérente."""
    party = db.get(Party, party_id)
    if party is None:
        return None

    update_data = data.model_dump(exclude_unset=True)
    start = update_data.get("start_date", party.start_date)
    end = update_data.get("end_date", party.end_date)
    if start and end and start > end:
        raise ValueError("La date de début doit précéder la date de fin.")

    for field, value in update_data.items():
        setattr(party, field, value)
    db.commit()
    db.refresh(party)
    return party


def delete_party(db: Session, party_id: int) -> bool:
    party = db.get(Party, party_id)
    if party is None:
        return False
    db.delete(party)
    db.commit()
    return True


def phone_last4(phone: Optional[str]) -> str:
    digits = re.sub(r"\D", "", phone or "")
    return digits[-4:]


def record_party_attendance(db: Session, party_id: int, data: PartyAttendanceCreate) -> PartyMember:
    """
    Enregistre (ou met à jour) la réponse d'un membre à une rencontre.
    Lève LookupError si la rencontre ou le membre est introuvable,
    ValueError si les 4 derniers chiffres du téléphone ne correspondent pas.
    """
    if db.get(Party, party_id) is None:
        raise LookupError("Rencontre introuvable.")
    member = db.get(Member, data.member_id)
    if member is None:
        raise LookupError("Membre introuvable.")
    if phone_last4(member.phone) != data.phone_last4:
        raise ValueError("Les 4 derniers chiffres du téléphone ne correspondent pas.")

    response = db.execute(
        select(PartyMember).where(
            PartyMember.party_id == party_id,
            PartyMember.member_id == data.member_id,
        )
    ).scalars().first()

    if response is None:
        response = PartyMember(party_id=party_id, member_id=data.member_id)
        db.add(response)
    response.status = data.status
    response.memo = data.memo.strip() if data.memo and data.memo.strip() else None

    db.commit()
    db.refresh(response)
    return response


def get_party_members(db: Session, party_id: int) -> List[PartyMember]:
    return db.execute(
        select(PartyMember).where(PartyMember.party_id == party_id).order_by(PartyMember.id)
    ).scalars().all()


def get_party_summary(db: Session, party_id: int) -> PartySummary:
    """Compteurs de réponses par statut."""
    statuses = db.execute(
        select(PartyMember.status).where(PartyMember.party_id == party_id)
    ).scalars().all()
    return PartySummary(
        party_id=party_id,
        total=len(statuses),
        attending=statuses.count("attending"),
        not_attending=statuses.count("not-attending"),
        undecided=statuses.count("undecided"),
    )
