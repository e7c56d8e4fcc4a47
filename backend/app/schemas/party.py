"""
Schémas Pydantic pour les rencontres de petits groupes (party).
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from app.models.party import PARTY_STATUSES


class PartyCreate(BaseModel):
    title: str
    party_date: dt.date
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le titre ne peut pas être vide.")
        return v.strip()

    @model_validator(mode="after")
    def period_ordered(self) -> "PartyCreate":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("La date de début doit précéder la date de fin.")
        return self


class PartyUpdate(BaseModel):
    title: Optional[str] = None
    party_date: Optional[dt.date] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le titre ne peut pas être vide.")
        return v.strip() if v else v


class PartyResponse(BaseModel):
    id: int
    title: str
    party_date: dt.date
    description: Optional[str]
    location: Optional[str]
    start_date: Optional[dt.date]
    end_date: Optional[dt.date]
    start_time: Optional[dt.time]
    end_time: Optional[dt.time]

    model_config = {"from_attributes": True}


class PartyAttendanceCreate(BaseModel):
    """Réponse d'un membre, vérifiée par les 4 derniers chiffres de son téléphone."""

    member_id: int
    phone_last4: str
    status: str
    memo: Optional[str] = None

    @field_validator("phone_last4")
    @classmethod
    def four_digits(cls, v: str) -> str:
        v = v.strip()
        if len(v) != 4 or not v.isdigit():
            raise ValueError("Saisissez les 4 derniers chiffres du téléphone.")
        return v

    @field_validator("status")
    @classmethod
    def valid_status(cls, v: str) -> str:
        if v not in PARTY_STATUSES:
            raise ValueError(f"Statut invalide. Valeurs acceptées : {set(PARTY_STATUSES)}")
        return v


class PartyMemberResponse(BaseModel):
    id: int
    party_id: int
    member_id: int
    status: str
    memo: Optional[str]

    model_config = {"from_attributes": True}


class PartySummary(BaseModel):
    party_id: int
    total: int
    attending: int
    not_attending: int
    undecided: int
