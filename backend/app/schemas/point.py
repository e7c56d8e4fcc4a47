"""
Schémas Pydantic pour la confirmation des appels et le registre de points.
Endpoints : /api/v1/points/*
"""

import datetime as dt
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, field_validator

from app.models.attendance import ATTENDANCE_STATUSES

MAX_ADJUST_BATCH = 500


class ConfirmRequest(BaseModel):
    """Confirmation d'un appel (ministère + date). `points` remplace le barème par défaut."""

    ministry_id: int
    attendance_date: dt.date
    points: Optional[Dict[str, int]] = None

    @field_validator("points")
    @classmethod
    def valid_points_table(cls, v: Optional[Dict[str, int]]) -> Optional[Dict[str, int]]:
        if v is None:
            return v
        unknown = set(v) - set(ATTENDANCE_STATUSES)
        if unknown:
            raise ValueError(f"Statuts inconnus dans le barème : {', '.join(sorted(unknown))}")
        return v


class ConfirmationFailure(BaseModel):
    attendance_id: int
    member_id: int
    reason: str


class ConfirmationReport(BaseModel):
    """Rapport de confirmation : succès partiel explicite, jamais d'échec global."""

    ministry_id: int
    attendance_date: dt.date
    confirmed: List[int]                 # attend.id crédités
    skipped: List[int]                   # déjà confirmés entre-temps (aucun crédit)
    failures: List[ConfirmationFailure]
    total_pending: int
    total_confirmed: int
    total_points: int


class PointAdjustRequest(BaseModel):
    """Ajout ou retrait manuel de points (bonus) pour plusieurs membres."""

    member_ids: List[int]
    amount: int
    is_add: bool = True
    subtype: str
    memo: Optional[str] = None

    @field_validator("member_ids")
    @classmethod
    def valid_member_ids(cls, v: List[int]) -> List[int]:
        if not v:
            raise ValueError("Sélectionnez au moins un membre.")
        if len(v) > MAX_ADJUST_BATCH:
            raise ValueError(f"Lot trop grand : maximum {MAX_ADJUST_BATCH} membres par requête.")
        return v

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Le nombre de points doit être strictement positif.")
        return v

    @field_validator("subtype")
    @classmethod
    def subtype_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le type de bonus est obligatoire.")
        return v.strip()


class PointAdjustFailure(BaseModel):
    member_id: int
    reason: str


class PointAdjustReport(BaseModel):
    delta: int
    succeeded: List[int]
    failures: List[PointAdjustFailure]


class LedgerEntryResponse(BaseModel):
    id: int
    member_id: int
    delta: int
    balance_after: int
    reason: Optional[str]
    source_type: str
    source_subtype: Optional[str]
    source_id: Optional[int]
    memo: Optional[str]
    occurred_at: datetime

    model_config = {"from_attributes": True}


class BalanceResponse(BaseModel):
    member_id: int
    name: Optional[str] = None
    balance: int


class BalanceCheck(BaseModel):
    """Solde enregistré comparé à la somme des écritures du journal."""
    member_id: int
    balance: int
    ledger_total: int
    consistent: bool


class QrResolveRequest(BaseModel):
    payload: str


class QrResolveResponse(BaseModel):
    member_id: int
    name: str
    phone: Optional[str]
    birth: Optional[dt.date]
    photo: Optional[str]
    balance: int
