"""
Service des cartes QR des membres.

Le QR code encode un JSON {"name", "phone", "birth"} ; à la lecture (écran points),
le contenu est résolu vers le membre correspondant et son solde courant.
"""

import io
import json
import logging
from datetime import date

import qrcode
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.member import Member
from app.schemas.point import QrResolveResponse
from app.services.ledger_service import get_balance

logger = logging.getLogger(__name__)

QR_FIELDS = ("name", "phone", "birth")


def build_member_payload(member: Member) -> str:
    """Contenu texte du QR code d'un membre. Lève ValueError si une information manque."""
    if not member.name or not member.phone or member.birth is None:
        raise ValueError("Nom, téléphone et date de naissance sont requis pour générer la carte QR.")
    return json.dumps(
        {"name": member.name, "phone": member.phone, "birth": member.birth.isoformat()},
        ensure_ascii=False,
    )


def generate_qr_image(payload: str) -> bytes:
    """Génère une image PNG du QR code encodant le contenu donné."""
    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def member_qr_image(db: Session, member_id: int) -> bytes:
    member = db.get(Member, member_id)
    if member is None:
        raise LookupError("Membre introuvable.")
    return generate_qr_image(build_member_payload(member))


def parse_payload(raw: str) -> dict:
    """Décode et valide le contenu d'un QR code scanné."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        raise ValueError("Le contenu du QR code n'est pas un JSON valide.")
    if not isinstance(data, dict) or not all(data.get(f) for f in QR_FIELDS):
        raise ValueError("Les données du QR code sont incomplètes.")
    try:
        data["birth"] = date.fromisoformat(str(data["birth"]))
    except ValueError:
        raise ValueError("Date de naissance illisible dans le QR code.")
    return data


def resolve_qr_payload(db: Session, raw: str) -> QrResolveResponse:
    """
    Retrouve le membre correspondant au QR code (nom + téléphone + naissance).
    Lève ValueError si le contenu est invalide, LookupError si aucun membre ne correspond.
    """
    data = parse_payload(raw)
    member = db.execute(
        select(Member).where(
            Member.name == data["name"],
            Member.phone == data["phone"],
            Member.birth == data["birth"],
        )
    ).scalars().first()
    if member is None:
        raise LookupError("Aucun membre ne correspond à ce QR code.")

    logger.debug("QR résolu vers le membre %s", member.id)
    return QrResolveResponse(
        member_id=member.id,
        name=member.name,
        phone=member.phone,
        birth=member.birth,
        photo=member.photo,
        balance=get_balance(db, member.id),
    )
