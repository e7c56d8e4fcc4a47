"""
Service métier pour les membres et leurs adhésions.
Les membres ne sont jamais supprimés : on désactive l'adhésion (is_active = False).
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.member import Member, Membership, Ministry
from app.schemas.member import (
    BirthdayResponse,
    MemberCreate,
    MemberResponse,
    MembershipCreate,
    MembershipResponse,
    MemberUpdate,
    MinistryCreate,
    MonthBirthdaysResponse,
    RosterMember,
)
from app.services import recurrence

logger = logging.getLogger(__name__)


def create_member(db: Session, data: MemberCreate) -> Member:
    member = Member(**data.model_dump())
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info("Membre créé : %s (%s)", member.name, member.id)
    return member


def get_members(db: Session) -> List[Member]:
    """Tous les membres, triés par nom."""
    return db.execute(select(Member).order_by(Member.name, Member.id)).scalars().all()


def get_member(db: Session, member_id: int) -> Optional[Member]:
    return db.get(Member, member_id)


def update_member(db: Session, member_id: int, data: MemberUpdate) -> Optional[Member]:
    """Met à jour les champs fournis d'un membre."""
    member = db.get(Member, member_id)
    if member is None:
        return None

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(member, field, value)

    db.commit()
    db.refresh(member)
    return member


def create_ministry(db: Session, data: MinistryCreate) -> Ministry:
    """Lève une ValueError si le nom existe déjà."""
    ministry = Ministry(name=data.name)
    db.add(ministry)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(f"Un ministère nommé '{data.name}' existe déjà.")
    db.refresh(ministry)
    return ministry


def get_ministries(db: Session) -> List[Ministry]:
    return db.execute(select(Ministry).order_by(Ministry.name)).scalars().all()


def add_membership(db: Session, member_id: int, data: MembershipCreate) -> Membership:
    """
    Inscrit un membre dans un ministère pour une année.
    Une adhésion active existante pour (membre, ministère, année) est mise à jour plutôt que dupliquée.
    """
    if db.get(Member, member_id) is None:
        raise ValueError("Membre introuvable.")
    if db.get(Ministry, data.ministry_id) is None:
        raise ValueError("Ministère introuvable.")

    membership = db.execute(
        select(Membership).where(
            Membership.member_id == member_id,
            Membership.ministry_id == data.ministry_id,
            Membership.year == data.year,
        )
    ).scalars().first()

    if membership is None:
        membership = Membership(member_id=member_id, **data.model_dump())
        db.add(membership)
    else:
        for field, value in data.model_dump().items():
            setattr(membership, field, value)
    membership.is_active = True

    db.commit()
    db.refresh(membership)
    return membership


def deactivate_membership(db: Session, membership_id: int) -> bool:
    """Désactive une adhésion. Retourne False si introuvable."""
    membership = db.get(Membership, membership_id)
    if membership is None:
        return False
    membership.is_active = False
    db.commit()
    return True


def get_ministry_members(db: Session, ministry_id: int, year: int) -> List[RosterMember]:
    """Membres actifs d'un ministère pour une année, triés par nom."""
    rows = db.execute(
        select(Member, Membership)
        .join(Membership, Membership.member_id == Member.id)
        .where(
            Membership.ministry_id == ministry_id,
            Membership.year == year,
            Membership.is_active.is_(True),
        )
        .order_by(Member.name, Member.id)
    ).all()
    return [
        RosterMember(
            member=MemberResponse.model_validate(member),
            membership=MembershipResponse.model_validate(membership),
        )
        for member, membership in rows
    ]


def _members_with_birth(db: Session) -> List[Member]:
    return db.execute(
        select(Member).where(Member.birth.is_not(None)).order_by(Member.name, Member.id)
    ).scalars().all()


def get_birthdays(db: Session, day: date) -> BirthdayResponse:
    """Membres dont l'anniversaire tombe ce jour-là, toutes années de naissance confondues."""
    birthdays = recurrence.build_birthday_map(_members_with_birth(db))
    return BirthdayResponse(
        day=day,
        members=[MemberResponse.model_validate(m) for m in recurrence.birthdays_on(birthdays, day)],
    )


def get_month_birthdays(db: Session, year: int, month: int) -> MonthBirthdaysResponse:
    birthdays = recurrence.build_birthday_map(_members_with_birth(db))
    by_day = recurrence.birthdays_in_month(birthdays, year, month)
    return MonthBirthdaysResponse(
        year=year,
        month=month,
        days={
            day: [MemberResponse.model_validate(m) for m in members]
            for day, members in by_day.items()
        },
    )
