"""
Service métier pour les feuilles d'appel.
Création par round, suppression, saisie des statuts, roster groupé et statistiques mensuelles.

Les conflits métier (round déjà utilisé, feuille confirmée) sont détectés par une lecture
préalable et lèvent une ValueError sans aucune écriture.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from app.models.attendance import ATTENDANCE_STATUSES, ROUNDS, Attendance
from app.models.member import Member, Membership, Ministry
from app.schemas.attendance import (
    AvailableRoundsResponse,
    MonthlyStatistics,
    RosterRecord,
    RosterResponse,
    SheetCreate,
    SheetResponse,
    StatusUpdate,
    StatusUpdateResult,
)
from app.services import recurrence
from app.services.roster import group_roster, summarize_roster

logger = logging.getLogger(__name__)

DEFAULT_STATUS = "absent"


def _used_rounds(db: Session, ministry_id: int, attendance_date: date) -> set:
    return set(db.execute(
        select(Attendance.round)
        .where(
            Attendance.ministry_id == ministry_id,
            Attendance.attendance_date == attendance_date,
        )
        .distinct()
    ).scalars().all())


def available_rounds(db: Session, ministry_id: int, attendance_date: date) -> AvailableRoundsResponse:
    """Rounds (1 à 3) encore libres pour ce ministère à cette date."""
    used = _used_rounds(db, ministry_id, attendance_date)
    return AvailableRoundsResponse(
        ministry_id=ministry_id,
        attendance_date=attendance_date,
        rounds=[r for r in ROUNDS if r not in used],
    )


def create_sheet(db: Session, data: SheetCreate) -> SheetResponse:
    """
    Crée la feuille d'appel d'un round : une ligne "absent" par membre actif du ministère
    pour l'année de la date d'appel.

    Lève ValueError si le ministère est introuvable, si le round est déjà utilisé
    ou si le ministère n'a aucun membre actif.
    """
    ministry = db.get(Ministry, data.ministry_id)
    if ministry is None:
        raise ValueError("Ministère introuvable.")

    if data.round in _used_rounds(db, data.ministry_id, data.attendance_date):
        raise ValueError(
            f"La feuille d'appel {ministry.name} du {data.attendance_date} "
            f"(round {data.round}) existe déjà."
        )

    member_ids = db.execute(
        select(Membership.member_id)
        .where(
            Membership.ministry_id == data.ministry_id,
            Membership.is_active.is_(True),
            Membership.year == data.attendance_date.year,
        )
        .distinct()
        .order_by(Membership.member_id)
    ).scalars().all()

    if not member_ids:
        raise ValueError(f"{ministry.name} n'a aucun membre actif.")

    db.bulk_insert_mappings(Attendance, [
        {
            "attendance_date": data.attendance_date,
            "ministry_id": data.ministry_id,
            "member_id": mid,
            "round": data.round,
            "status": DEFAULT_STATUS,
            "memo": None,
            "is_confirmed": False,
        }
        for mid in member_ids
    ])
    db.commit()

    logger.info(
        "Feuille d'appel créée : %s %s round %s : %d membres",
        ministry.name, data.attendance_date, data.round, len(member_ids),
    )
    return SheetResponse(
        ministry_id=data.ministry_id,
        attendance_date=data.attendance_date,
        round=data.round,
        created_count=len(member_ids),
    )


def _sheet_has_confirmed(db: Session, sheet: tuple) -> bool:
    return db.execute(
        select(Attendance.id).where(*sheet, Attendance.is_confirmed.is_(True)).limit(1)
    ).scalar() is not None


def delete_sheet(db: Session, ministry_id: int, attendance_date: date, round_label: str) -> int:
    """
    Supprime la feuille d'appel d'un round. Retourne le nombre de lignes supprimées (0 = introuvable).
    Bloqué si une ligne de la feuille est déjà confirmée.
    """
    sheet = (
        Attendance.ministry_id == ministry_id,
        Attendance.attendance_date == attendance_date,
        Attendance.round == round_label,
    )
    if _sheet_has_confirmed(db, sheet):
        raise ValueError("Impossible de supprimer cette feuille d'appel : elle est déjà confirmée.")

    # Une confirmation peut être committée entre la lecture et la suppression
    result = db.execute(
        delete(Attendance)
        .where(*sheet, Attendance.is_confirmed.is_(False))
        .execution_options(synchronize_session=False)
    )
    if _sheet_has_confirmed(db, sheet):
        db.rollback()
        raise ValueError("Impossible de supprimer cette feuille d'appel : elle est déjà confirmée.")
    db.commit()
    return result.rowcount


def _load_rows(db: Session, ids: List[int]) -> List[Attendance]:
    return db.execute(select(Attendance).where(Attendance.id.in_(ids))).scalars().all()


def update_statuses(db: Session, data: StatusUpdate) -> StatusUpdateResult:
    """
    Applique le statut (et le mémo éventuel) aux lignes sélectionnées.
    Refusé en bloc si une des lignes est confirmée ou introuvable.
    """
    rows = _load_rows(db, data.ids)

    found = {row.id for row in rows}
    missing = [i for i in data.ids if i not in found]
    if missing:
        raise ValueError(f"Lignes d'appel introuvables : {', '.join(map(str, missing))}")

    locked = [row.id for row in rows if row.is_confirmed]
    if locked:
        raise ValueError(
            f"Lignes déjà confirmées, modification impossible : {', '.join(map(str, locked))}"
        )

    # Écriture conditionnelle : une ligne confirmée entre-temps n'est pas modifiée
    locked = []
    for row_id in found:
        values = {"status": data.status}
        if row_id in data.memos:
            values["memo"] = data.memos[row_id] or None
        result = db.execute(
            update(Attendance)
            .where(Attendance.id == row_id, Attendance.is_confirmed.is_(False))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            locked.append(row_id)

    if locked:
        db.rollback()
        raise ValueError(
            f"Lignes déjà confirmées, modification impossible : {', '.join(map(str, sorted(locked)))}"
        )
    db.commit()

    return StatusUpdateResult(status=data.status, updated=len(rows))


def _active_memberships(db: Session, member_ids: List[int], year: int) -> Dict[tuple, Membership]:
    """Adhésion active la plus récente (année courante ou suivante) par (membre, ministère)."""
    if not member_ids:
        return {}
    memberships = db.execute(
        select(Membership)
        .where(
            Membership.member_id.in_(member_ids),
            Membership.year.in_([year, year + 1]),
            Membership.is_active.is_(True),
        )
        .order_by(Membership.year.desc(), Membership.id.desc())
    ).scalars().all()

    resolved: Dict[tuple, Membership] = {}
    for membership in memberships:
        resolved.setdefault((membership.member_id, membership.ministry_id), membership)
    return resolved


def load_roster_records(
    db: Session,
    attendance_date: date,
    ministry_id: Optional[int] = None,
) -> List[RosterRecord]:
    """Lignes d'appel d'une date, dénormalisées avec membre, ministère et adhésion active."""
    stmt = (
        select(Attendance, Member, Ministry)
        .outerjoin(Member, Member.id == Attendance.member_id)
        .outerjoin(Ministry, Ministry.id == Attendance.ministry_id)
        .where(Attendance.attendance_date == attendance_date)
        .order_by(Attendance.ministry_id, Attendance.id)
    )
    if ministry_id is not None:
        stmt = stmt.where(Attendance.ministry_id == ministry_id)
    rows = db.execute(stmt).all()

    memberships = _active_memberships(
        db, sorted({att.member_id for att, _, _ in rows}), attendance_date.year,
    )

    records = []
    for attendance, member, ministry in rows:
        membership = memberships.get((attendance.member_id, attendance.ministry_id))
        records.append(RosterRecord(
            id=attendance.id,
            attendance_date=attendance.attendance_date,
            ministry_id=attendance.ministry_id,
            member_id=attendance.member_id,
            round=attendance.round,
            status=attendance.status,
            memo=attendance.memo,
            is_confirmed=bool(attendance.is_confirmed),
            ministry_name=ministry.name if ministry else None,
            member_name=member.name if member else None,
            member_phone=member.phone if member else None,
            part=membership.part if membership else None,
            grade=membership.grade if membership else None,
            class_no=membership.class_no if membership else None,
            position=membership.position if membership else None,
        ))
    return records


def get_roster(db: Session, attendance_date: date, ministry_id: Optional[int] = None) -> RosterResponse:
    """Roster groupé d'une date et ses compteurs de présence, recalculés à chaque appel."""
    records = load_roster_records(db, attendance_date, ministry_id)
    grouped = group_roster(records)
    return RosterResponse(
        attendance_date=attendance_date,
        ministries=grouped,
        summary=summarize_roster(grouped),
    )


def get_monthly_statistics(
    db: Session,
    year: int,
    month: int,
    ministry_id: Optional[int] = None,
) -> MonthlyStatistics:
    """Totaux par statut sur le mois et dates ayant une feuille d'appel."""
    start, end = recurrence.month_bounds(year, month)
    stmt = select(Attendance.attendance_date, Attendance.status).where(
        Attendance.attendance_date >= start.date(),
        Attendance.attendance_date <= end.date(),
    )
    if ministry_id is not None:
        stmt = stmt.where(Attendance.ministry_id == ministry_id)
    rows = db.execute(stmt).all()

    counts = {"present": 0, "late": 0, "absent": 0, "unset": 0}
    dates = set()
    for attendance_date, status in rows:
        dates.add(attendance_date)
        counts[status if status in ATTENDANCE_STATUSES else "unset"] += 1

    return MonthlyStatistics(
        year=year,
        month=month,
        ministry_id=ministry_id,
        total=len(rows),
        dates=sorted(dates),
        **counts,
    )
