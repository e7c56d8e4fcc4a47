"""
Schémas Pydantic pour les feuilles d'appel et le regroupement du roster.

Note : on importe datetime en tant que module (dt) pour éviter le conflit de nommage
entre le champ `attendance_date` et le type `datetime.date` dans Pydantic v2.
"""

import datetime as dt
from typing import Dict, List, Optional

from pydantic import BaseModel, field_validator

from app.models.attendance import ATTENDANCE_STATUSES, ROUNDS


class RosterRecord(BaseModel):
    """Ligne d'appel dénormalisée : membre, ministère et adhésion active résolus."""

    id: int
    attendance_date: dt.date
    ministry_id: int
    member_id: int
    round: Optional[str] = None
    status: Optional[str] = None
    memo: Optional[str] = None
    is_confirmed: bool = False

    ministry_name: Optional[str] = None
    member_name: Optional[str] = None
    member_phone: Optional[str] = None
    part: Optional[str] = None
    grade: Optional[str] = None
    class_no: Optional[str] = None
    position: Optional[str] = None


class RosterGroup(BaseModel):
    """Groupe (pupitre ou année) d'un round ; `classes` n'est rempli que hors chorales."""

    label: str
    present: int
    total: int
    records: List[RosterRecord]
    classes: Dict[str, List[RosterRecord]] = {}


class RosterCount(BaseModel):
    present: int
    total: int


class MinistrySummary(BaseModel):
    present: int
    total: int
    rounds: Dict[str, RosterCount]


class RosterResponse(BaseModel):
    attendance_date: dt.date
    ministries: Dict[str, Dict[str, Dict[str, RosterGroup]]]
    summary: Dict[str, MinistrySummary]


class SheetCreate(BaseModel):
    ministry_id: int
    attendance_date: dt.date
    round: str = "1"

    @field_validator("round", mode="before")
    @classmethod
    def valid_round(cls, v) -> str:
        v = str(v).strip()
        if v not in ROUNDS:
            raise ValueError(f"Round invalide. Valeurs acceptées : {', '.join(ROUNDS)}")
        return v


class SheetResponse(BaseModel):
    ministry_id: int
    attendance_date: dt.date
    round: str
    created_count: int


class AvailableRoundsResponse(BaseModel):
    ministry_id: int
    attendance_date: dt.date
    rounds: List[str]


class StatusUpdate(BaseModel):
    """Mise à jour en masse du statut des lignes cochées."""

    ids: List[int]
    status: str
    memos: Dict[int, Optional[str]] = {}

    @field_validator("ids")
    @classmethod
    def not_empty(cls, v: List[int]) -> List[int]:
        if not v:
            raise ValueError("Sélectionnez au moins une ligne à mettre à jour.")
        return v

    @field_validator("status")
    @classmethod
    def valid_status(cls, v: str) -> str:
        if v not in ATTENDANCE_STATUSES:
            raise ValueError(f"Statut invalide. Valeurs acceptées : {set(ATTENDANCE_STATUSES)}")
        return v


class StatusUpdateResult(BaseModel):
    status: str
    updated: int


class MonthlyStatistics(BaseModel):
    year: int
    month: int
    ministry_id: Optional[int] = None
    total: int
    present: int
    late: int
    absent: int
    unset: int
    dates: List[dt.date]
