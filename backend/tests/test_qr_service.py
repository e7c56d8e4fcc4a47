"""
Tests du service des cartes QR : contenu, image PNG et résolution vers le membre.
"""

import json
from datetime import date
from types import SimpleNamespace

import pytest

from app.models.member import Member
from app.models.point import MemberPoint
from app.services.qr_service import (
    build_member_payload,
    generate_qr_image,
    member_qr_image,
    parse_payload,
    resolve_qr_payload,
)


def make_member(**kwargs):
    defaults = {"name": "김철수", "phone": "010-1234-5678", "birth": date(1980, 3, 15)}
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ============================================================
# Contenu et image
# ============================================================

def test_contenu_json_du_qr():
    payload = json.loads(build_member_payload(make_member()))
    assert payload == {"name": "김철수", "phone": "010-1234-5678", "birth": "1980-03-15"}


def test_contenu_incomplet_refuse():
    with pytest.raises(ValueError):
        build_member_payload(make_member(phone=None))
    with pytest.raises(ValueError):
        build_member_payload(make_member(birth=None))


def test_image_png():
    png = generate_qr_image(build_member_payload(make_member()))
    assert png.startswith(b"\x89PNG")


def test_image_membre_introuvable(db_session):
    with pytest.raises(LookupError):
        member_qr_image(db_session, 999)


# ============================================================
# Lecture
# ============================================================

def test_lecture_json_invalide():
    with pytest.raises(ValueError) as exc:
        parse_payload("pas du json")
    assert "JSON" in str(exc.value)


def test_lecture_champs_manquants():
    with pytest.raises(ValueError):
        parse_payload(json.dumps({"name": "김철수"}))
    with pytest.raises(ValueError):
        parse_payload(json.dumps(["김철수"]))


def test_lecture_date_illisible():
    with pytest.raises(ValueError):
        parse_payload(json.dumps({"name": "a", "phone": "1", "birth": "15/03/1980"}))


def test_resolution_vers_le_membre_et_son_solde(db_session):
    member = Member(name="김철수", phone="010-1234-5678", birth=date(1980, 3, 15))
    db_session.add(member)
    db_session.flush()
    db_session.add(MemberPoint(id=member.id, balance=35))
    db_session.commit()

    result = resolve_qr_payload(db_session, build_member_payload(member))

    assert result.member_id == member.id
    assert result.balance == 35


def test_resolution_aucun_membre(db_session):
    with pytest.raises(LookupError):
        resolve_qr_payload(db_session, build_member_payload(make_member()))
