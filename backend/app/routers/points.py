"""
Router pour le registre de points.
Confirmation des appels (crédit automatique), bonus manuels, soldes, journal et lecture des cartes QR.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.point import (
    BalanceCheck,
    BalanceResponse,
    ConfirmationReport,
    ConfirmRequest,
    LedgerEntryResponse,
    PointAdjustReport,
    PointAdjustRequest,
    QrResolveRequest,
    QrResolveResponse,
)
from app.services import ledger_service, qr_service
from app.state import AppState, get_app_state

router = APIRouter(prefix="/api/v1/points", tags=["Points"])


@router.post(
    "/confirm",
    response_model=ConfirmationReport,
    summary="Confirmer un appel et créditer les points",
)
def confirm_attendance(data: ConfirmRequest, db: Session = Depends(get_db)):
    """
    Confirme toutes les lignes saisies et non confirmées d'un ministère pour une date.

    Comportement :
    - Une transaction par ligne : l'échec d'une ligne n'interrompt pas les suivantes
    - Idempotent : une ligne déjà confirmée n'est jamais recréditée
    - Retourne le rapport : lignes confirmées / ignorées / échecs avec raison
    """
    return ledger_service.confirm_attendance(db, data.ministry_id, data.attendance_date, data.points)


@router.post("/adjust", response_model=PointAdjustReport, summary="Ajouter ou retirer des points")
def adjust_points(data: PointAdjustRequest, db: Session = Depends(get_db)):
    """Bonus manuel pour les membres sélectionnés. Les échecs individuels sont rapportés."""
    return ledger_service.adjust_points(db, data)


@router.get("/balances", response_model=List[BalanceResponse], summary="Lister les soldes")
def list_balances(
    year: Optional[int] = None,
    state: AppState = Depends(get_app_state),
    db: Session = Depends(get_db),
):
    """Soldes des membres, filtrés sur le ministère actif (paramètre ministry_id ou en-tête X-Ministry-Id)."""
    return ledger_service.list_balances(db, state.active_ministry_id, year)


@router.post("/qr/resolve", response_model=QrResolveResponse, summary="Lire une carte QR")
def resolve_qr(data: QrResolveRequest, db: Session = Depends(get_db)):
    """Retrouve le membre d'une carte QR scannée et son solde courant."""
    try:
        return qr_service.resolve_qr_payload(db, data.payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{member_id}", response_model=BalanceCheck, summary="Solde d'un membre")
def get_balance(member_id: int, db: Session = Depends(get_db)):
    balance = ledger_service.get_balance(db, member_id)
    ledger_total = ledger_service.recompute_balance(db, member_id)
    return BalanceCheck(
        member_id=member_id,
        balance=balance,
        ledger_total=ledger_total,
        consistent=balance == ledger_total,
    )


@router.get("/{member_id}/ledger", response_model=List[LedgerEntryResponse], summary="Journal d'un membre")
def get_member_ledger(member_id: int, db: Session = Depends(get_db)):
    """Écritures de points d'un membre, de la plus récente à la plus ancienne."""
    return ledger_service.get_member_ledger(db, member_id)
