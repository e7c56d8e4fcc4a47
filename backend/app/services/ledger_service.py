"""
Service du registre de points : confirmation des appels et bonus manuels.

Confirmation d'un appel (ministère + date) :
- Seules les lignes avec un statut (present, late, absent) et is_confirmed = False sont traitées,
  dans l'ordre des id.
- Chaque ligne est traitée dans SA transaction (commit / rollback par ligne) :
  1. réservation conditionnelle : UPDATE ... SET is_confirmed = true WHERE is_confirmed = false
     → 0 ligne affectée = confirmée entre-temps par un autre appel, aucun crédit ;
  2. lecture du solde courant (0 si absent) ;
  3. ajout d'une écriture au journal (delta, balance_after, source = id de la ligne) ;
  4. upsert du solde.
- L'échec d'une ligne annule uniquement cette ligne (drapeau compris), est consigné dans le
  rapport et n'interrompt pas le lot.
- Relancer la confirmation est sans effet : les lignes confirmées ne sont plus sélectionnées.
"""

import logging
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.attendance import ATTENDANCE_STATUSES, Attendance
from app.models.member import Member, Membership
from app.models.point import SOURCE_ATTENDANCE, SOURCE_BONUS, MemberPoint, PointLedger
from app.schemas.point import (
    BalanceResponse,
    ConfirmationFailure,
    ConfirmationReport,
    PointAdjustFailure,
    PointAdjustReport,
    PointAdjustRequest,
)

logger = logging.getLogger(__name__)


def points_table(overrides: Optional[Dict[str, int]] = None) -> Dict[str, int]:
    """Barème effectif : settings.ATTENDANCE_POINTS, surchargé statut par statut."""
    table = dict(settings.ATTENDANCE_POINTS)
    if overrides:
        table.update(overrides)
    return table


def _points_for(status: str, table: Dict[str, int]) -> int:
    if status not in table:
        raise ValueError(f"Aucun barème défini pour le statut '{status}'.")
    return table[status]


# --- Sous-étapes d'une écriture (une transaction par ligne) ---

def _claim_record(db: Session, attendance_id: int) -> bool:
    """Passe is_confirmed à True si et seulement s'il était False. Retourne True si réservé."""
    result = db.execute(
        update(Attendance)
        .where(Attendance.id == attendance_id, Attendance.is_confirmed.is_(False))
        .values(is_confirmed=True)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _read_balance(db: Session, member_id: int) -> Optional[MemberPoint]:
    return db.execute(
        select(MemberPoint).where(MemberPoint.id == member_id).with_for_update()
    ).scalar_one_or_none()


def _append_ledger_entry(
    db: Session,
    member_id: int,
    delta: int,
    balance_after: int,
    reason: str,
    source_type: str,
    source_id: Optional[int] = None,
    source_subtype: Optional[str] = None,
    memo: Optional[str] = None,
) -> PointLedger:
    entry = PointLedger(
        member_id=member_id,
        delta=delta,
        balance_after=balance_after,
        reason=reason,
        source_type=source_type,
        source_subtype=source_subtype,
        source_id=source_id,
        memo=memo,
        occurred_at=datetime.now(timezone.utc),
    )
    db.add(entry)
    db.flush()
    return entry


def _upsert_balance(db: Session, member_id: int, current: Optional[MemberPoint], new_balance: int) -> None:
    if current is None:
        db.add(MemberPoint(id=member_id, balance=new_balance))
    else:
        current.balance = new_balance
    db.flush()


def _credit(
    db: Session,
    member_id: int,
    delta: int,
    reason: str,
    source_type: str,
    source_id: Optional[int] = None,
    source_subtype: Optional[str] = None,
    memo: Optional[str] = None,
) -> int:
    """Écrit une variation de points (journal + solde) sans committer. Retourne le nouveau solde."""
    current = _read_balance(db, member_id)
    new_balance = (current.balance if current is not None else 0) + delta
    _append_ledger_entry(
        db, member_id, delta, new_balance, reason, source_type,
        source_id=source_id, source_subtype=source_subtype, memo=memo,
    )
    _upsert_balance(db, member_id, current, new_balance)
    return new_balance


# --- Confirmation des appels ---

def confirm_attendance(
    db: Session,
    ministry_id: int,
    attendance_date: date,
    points: Optional[Dict[str, int]] = None,
) -> ConfirmationReport:
    """
    Confirme l'appel d'un ministère pour une date et crédite les points.

    Ne lève pas d'exception pour l'échec d'une ligne : le rapport liste les lignes
    confirmées, celles ignorées (confirmées en parallèle) et les échecs avec leur raison.
    """
    table = points_table(points)

    pending = db.execute(
        select(Attendance.id, Attendance.member_id, Attendance.status)
        .where(
            Attendance.ministry_id == ministry_id,
            Attendance.attendance_date == attendance_date,
            Attendance.status.in_(ATTENDANCE_STATUSES),
            Attendance.is_confirmed.is_(False),
        )
        .order_by(Attendance.id)
    ).all()

    confirmed: List[int] = []
    skipped: List[int] = []
    failures: List[ConfirmationFailure] = []
    total_points = 0

    for attendance_id, member_id, status in pending:
        try:
            delta = _points_for(status, table)
            if not _claim_record(db, attendance_id):
                db.rollback()
                skipped.append(attendance_id)
                logger.debug("Appel #%s déjà confirmé, ignoré", attendance_id)
                continue
            _credit(
                db, member_id, delta,
                reason=status,
                source_type=SOURCE_ATTENDANCE,
                source_id=attendance_id,
                memo=f"{attendance_date.isoformat()} {status}",
            )
            db.commit()
        except (SQLAlchemyError, ValueError) as exc:
            db.rollback()
            logger.warning("Échec de confirmation de l'appel #%s (membre %s) : %s", attendance_id, member_id, exc)
            failures.append(ConfirmationFailure(
                attendance_id=attendance_id,
                member_id=member_id,
                reason=f"Appel #{attendance_id} : {exc}",
            ))
            continue

        confirmed.append(attendance_id)
        total_points += delta

    logger.info(
        "Confirmation ministère=%s date=%s : %d en attente, %d confirmés, %d ignorés, %d échecs, %d points",
        ministry_id, attendance_date, len(pending), len(confirmed), len(skipped), len(failures), total_points,
    )

    return ConfirmationReport(
        ministry_id=ministry_id,
        attendance_date=attendance_date,
        confirmed=confirmed,
        skipped=skipped,
        failures=failures,
        total_pending=len(pending),
        total_confirmed=len(confirmed),
        total_points=total_points,
    )


# --- Bonus manuels ---

def adjust_points(db: Session, data: PointAdjustRequest) -> PointAdjustReport:
    """
    Ajoute ou retire des points à plusieurs membres.
    Même politique que la confirmation : une transaction par membre, échecs rapportés.
    """
    delta = data.amount if data.is_add else -data.amount
    reason = "bonus-add" if data.is_add else "bonus-deduct"
    memo = data.memo or f"{data.subtype} {'+' if data.is_add else '-'}{data.amount}"

    succeeded: List[int] = []
    failures: List[PointAdjustFailure] = []

    for member_id in dict.fromkeys(data.member_ids):
        try:
            if db.get(Member, member_id) is None:
                raise ValueError("Membre introuvable.")
            _credit(
                db, member_id, delta,
                reason=reason,
                source_type=SOURCE_BONUS,
                source_subtype=data.subtype,
                memo=memo,
            )
            db.commit()
        except (SQLAlchemyError, ValueError) as exc:
            db.rollback()
            logger.warning("Échec de l'ajustement de points du membre %s : %s", member_id, exc)
            failures.append(PointAdjustFailure(member_id=member_id, reason=str(exc)))
            continue
        succeeded.append(member_id)

    logger.info("Ajustement %+d points (%s) : %d réussis, %d échecs", delta, data.subtype, len(succeeded), len(failures))
    return PointAdjustReport(delta=delta, succeeded=succeeded, failures=failures)


# --- Lecture ---

def get_member_ledger(db: Session, member_id: int) -> List[PointLedger]:
    """Écritures d'un membre, de la plus récente à la plus ancienne."""
    return db.execute(
        select(PointLedger)
        .where(PointLedger.member_id == member_id)
        .order_by(PointLedger.occurred_at.desc(), PointLedger.id.desc())
    ).scalars().all()


def get_balance(db: Session, member_id: int) -> int:
    point = db.get(MemberPoint, member_id)
    return point.balance if point is not None else 0


def recompute_balance(db: Session, member_id: int) -> int:
    """Somme des deltas du journal : doit toujours égaler le solde enregistré."""
    return db.execute(
        select(func.coalesce(func.sum(PointLedger.delta), 0)).where(PointLedger.member_id == member_id)
    ).scalar() or 0


def list_balances(
    db: Session,
    ministry_id: Optional[int] = None,
    year: Optional[int] = None,
) -> List[BalanceResponse]:
    """Soldes des membres (0 si aucun point), filtrés sur les adhésions actives d'un ministère."""
    stmt = (
        select(Member.id, Member.name, MemberPoint.balance)
        .outerjoin(MemberPoint, MemberPoint.id == Member.id)
    )
    if ministry_id is not None:
        conditions = [
            Membership.member_id == Member.id,
            Membership.ministry_id == ministry_id,
            Membership.is_active.is_(True),
        ]
        if year is not None:
            conditions.append(Membership.year == year)
        stmt = stmt.join(Membership, and_(*conditions)).distinct()

    rows = db.execute(stmt.order_by(Member.name, Member.id)).all()
    return [
        BalanceResponse(member_id=member_id, name=name, balance=balance or 0)
        for member_id, name, balance in rows
    ]
