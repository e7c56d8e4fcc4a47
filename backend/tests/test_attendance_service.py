"""
Tests du service des feuilles d'appel (SQLite en mémoire).
"""

from datetime import date
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from pydantic import ValidationError
from sqlalchemy import update

from app.models.attendance import Attendance
from app.models.member import Member, Membership, Ministry
from app.schemas.attendance import SheetCreate, StatusUpdate
from app.services import attendance_service
from app.services.attendance_service import (
    available_rounds,
    create_sheet,
    delete_sheet,
    get_monthly_statistics,
    get_roster,
    load_roster_records,
    update_statuses,
)
from app.services.roster import BUCKET_UNKNOWN

DAY = date(2024, 6, 2)


# --- Helpers ---

def seed_ministry_with_members(db, name="유년부", members=(("가", "1", "1"), ("나", "1", "2"), ("다", None, None))):
    """Ministère avec des membres actifs pour 2024 : (nom, année scolaire, classe)."""
    ministry = Ministry(name=name)
    db.add(ministry)
    db.flush()
    for member_name, grade, class_no in members:
        member = Member(name=member_name)
        db.add(member)
        db.flush()
        db.add(Membership(
            member_id=member.id, ministry_id=ministry.id, year=2024,
            grade=grade, class_no=class_no, is_active=True,
        ))
    db.commit()
    return ministry


def sheet_rows(db, ministry_id, round_label="1"):
    return db.query(Attendance).filter_by(ministry_id=ministry_id, round=round_label).order_by(Attendance.id).all()


def confirm_committed(db, attendance_id):
    """Confirmation committée par une autre requête."""
    db.execute(update(Attendance).where(Attendance.id == attendance_id).values(is_confirmed=True))
    db.commit()


# ============================================================
# Création / suppression
# ============================================================

def test_creation_feuille_une_ligne_absent_par_membre(db_session):
    ministry = seed_ministry_with_members(db_session)

    result = create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=DAY, round="1"))

    assert result.created_count == 3
    rows = sheet_rows(db_session, ministry.id)
    assert {r.status for r in rows} == {"absent"}
    assert not any(r.is_confirmed for r in rows)


def test_round_deja_utilise_refuse(db_session):
    ministry = seed_ministry_with_members(db_session)
    create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=DAY))

    with pytest.raises(ValueError) as exc:
        create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=DAY))
    assert "existe déjà" in str(exc.value)
    assert len(sheet_rows(db_session, ministry.id)) == 3


def test_rounds_disponibles(db_session):
    ministry = seed_ministry_with_members(db_session)
    create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=DAY, round="2"))

    assert available_rounds(db_session, ministry.id, DAY).rounds == ["1", "3"]
    assert available_rounds(db_session, ministry.id, date(2024, 6, 9)).rounds == ["1", "2", "3"]


def test_round_invalide_rejete():
    with pytest.raises(ValidationError):
        SheetCreate(ministry_id=1, attendance_date=DAY, round="4")


def test_ministere_sans_membre_actif(db_session):
    ministry = seed_ministry_with_members(db_session, members=())
    with pytest.raises(ValueError) as exc:
        create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=DAY))
    assert "aucun membre actif" in str(exc.value)


def test_ministere_introuvable(db_session):
    with pytest.raises(ValueError):
        create_sheet(db_session, SheetCreate(ministry_id=999, attendance_date=DAY))


def test_suppression_feuille(db_session):
    ministry = seed_ministry_with_members(db_session)
    create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=DAY))

    assert delete_sheet(db_session, ministry.id, DAY, "1") == 3
    assert sheet_rows(db_session, ministry.id) == []
    assert delete_sheet(db_session, ministry.id, DAY, "1") == 0


def test_suppression_feuille_confirmee_refusee(db_session):
    ministry = seed_ministry_with_members(db_session)
    create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=DAY))
    rows = sheet_rows(db_session, ministry.id)
    rows[0].is_confirmed = True
    db_session.commit()

    with pytest.raises(ValueError) as exc:
        delete_sheet(db_session, ministry.id, DAY, "1")
    assert "confirmée" in str(exc.value)
    assert len(sheet_rows(db_session, ministry.id)) == 3


# ============================================================
# Saisie des statuts
# ============================================================

def test_mise_a_jour_statuts_et_memos(db_session):
    ministry = seed_ministry_with_members(db_session)
    create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=DAY))
    rows = sheet_rows(db_session, ministry.id)

    result = update_statuses(db_session, StatusUpdate(
        ids=[rows[0].id, rows[1].id], status="present", memos={rows[1].id: "en retard de 2 min"},
    ))

    assert result.updated == 2
    db_session.expire_all()
    assert [r.status for r in sheet_rows(db_session, ministry.id)] == ["present", "present", "absent"]
    assert db_session.get(Attendance, rows[1].id).memo == "en retard de 2 min"


def test_mise_a_jour_ligne_confirmee_refusee(db_session):
    ministry = seed_ministry_with_members(db_session)
    create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=DAY))
    rows = sheet_rows(db_session, ministry.id)
    rows[0].is_confirmed = True
    db_session.commit()

    with pytest.raises(ValueError):
        update_statuses(db_session, StatusUpdate(ids=[rows[0].id, rows[1].id], status="late"))
    db_session.expire_all()
    assert db_session.get(Attendance, rows[1].id).status == "absent"


def test_mise_a_jour_ligne_introuvable(db_session):
    with pytest.raises(ValueError) as exc:
        update_statuses(db_session, StatusUpdate(ids=[12345], status="late"))
    assert "12345" in str(exc.value)


def test_statut_invalide_rejete():
    with pytest.raises(ValidationError):
        StatusUpdate(ids=[1], status="excused")


# ============================================================
# Roster
# ============================================================

def test_roster_groupe_depuis_la_base(db_session):
    ministry = seed_ministry_with_members(db_session)
    create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=DAY))
    rows = sheet_rows(db_session, ministry.id)
    update_statuses(db_session, StatusUpdate(ids=[rows[0].id], status="present"))

    roster = get_roster(db_session, DAY)

    groups = roster.ministries["유년부"]["1"]
    assert list(groups) == ["1학년", BUCKET_UNKNOWN]
    assert list(groups["1학년"].classes) == ["1반", "2반"]
    assert groups["1학년"].present == 1
    assert roster.summary["유년부"].total == 3


def test_roster_filtre_par_ministere(db_session):
    first = seed_ministry_with_members(db_session)
    second = seed_ministry_with_members(db_session, name="청년부", members=(("라", "3", "1"),))
    create_sheet(db_session, SheetCreate(ministry_id=first.id, attendance_date=DAY))
    create_sheet(db_session, SheetCreate(ministry_id=second.id, attendance_date=DAY))

    roster = get_roster(db_session, DAY, second.id)
    assert list(roster.ministries) == ["청년부"]


def test_roster_adhesion_de_l_annee_suivante(db_session):
    """Les membres inscrits pour l'année suivante gardent leurs attributs dans le roster."""
    ministry = seed_ministry_with_members(db_session, members=())
    member = Member(name="마")
    db_session.add(member)
    db_session.flush()
    db_session.add(Membership(member_id=member.id, ministry_id=ministry.id, year=2025, grade="4", is_active=True))
    db_session.add(Attendance(
        attendance_date=DAY, ministry_id=ministry.id, member_id=member.id, round="1", status="late",
    ))
    db_session.commit()

    records = load_roster_records(db_session, DAY)
    assert records[0].grade == "4"
    assert records[0].member_name == "마"


# ============================================================
# Statistiques
# ============================================================

def test_statistiques_du_mois(db_session):
    ministry = seed_ministry_with_members(db_session)
    create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=DAY))
    create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=date(2024, 6, 9)))
    create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=date(2024, 7, 7)))
    rows = sheet_rows(db_session, ministry.id)
    update_statuses(db_session, StatusUpdate(ids=[rows[0].id], status="present"))
    update_statuses(db_session, StatusUpdate(ids=[rows[1].id], status="late"))
    rows[2].status = None
    db_session.commit()

    stats = get_monthly_statistics(db_session, 2024, 6, ministry.id)

    assert stats.total == 6
    assert (stats.present, stats.late, stats.absent, stats.unset) == (1, 1, 3, 1)
    assert stats.dates == [DAY, date(2024, 6, 9)]


# ============================================================
# Confirmation concurrente
# ============================================================

def test_suppression_bloquee_si_confirmee_apres_la_verification(db_session):
    """Une ligne confirmée entre la vérification et la suppression n'est jamais supprimée."""
    ministry = seed_ministry_with_members(db_session)
    create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=DAY))
    confirmed_id = sheet_rows(db_session, ministry.id)[0].id
    real = attendance_service._sheet_has_confirmed
    calls = []

    def stale_check(db, sheet):
        calls.append(sheet)
        if len(calls) == 1:
            confirm_committed(db, confirmed_id)
            return False
        return real(db, sheet)

    with patch("app.services.attendance_service._sheet_has_confirmed", side_effect=stale_check):
        with pytest.raises(ValueError):
            delete_sheet(db_session, ministry.id, DAY, "1")

    db_session.expire_all()
    rows = sheet_rows(db_session, ministry.id)
    assert len(rows) == 3
    assert db_session.get(Attendance, confirmed_id).is_confirmed is True


def test_statut_non_modifie_si_confirmee_apres_la_lecture(db_session):
    """Une ligne confirmée entre la lecture et l'écriture garde son statut, le lot est annulé."""
    ministry = seed_ministry_with_members(db_session)
    create_sheet(db_session, SheetCreate(ministry_id=ministry.id, attendance_date=DAY))
    rows = sheet_rows(db_session, ministry.id)
    ids = [rows[0].id, rows[1].id]

    def stale_load(db, wanted):
        snapshot = [SimpleNamespace(id=i, is_confirmed=False) for i in wanted]
        confirm_committed(db, ids[0])
        return snapshot

    with patch("app.services.attendance_service._load_rows", side_effect=stale_load):
        with pytest.raises(ValueError) as exc:
            update_statuses(db_session, StatusUpdate(ids=ids, status="present"))
    assert str(ids[0]) in str(exc.value)

    db_session.expire_all()
    assert db_session.get(Attendance, ids[0]).status == "absent"
    assert db_session.get(Attendance, ids[0]).is_confirmed is True
    assert db_session.get(Attendance, ids[1]).status == "absent"
