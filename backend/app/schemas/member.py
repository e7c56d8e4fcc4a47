"""
Schémas Pydantic pour les membres, ministères et adhésions.
"""

import datetime as dt
import re
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, field_validator

PHONE_REGEX = re.compile(r"^[0-9+\-\s]{7,20}$")


def _validate_phone(v: Optional[str]) -> Optional[str]:
    if v is None or not v.strip():
        return None
    if not PHONE_REGEX.match(v.strip()):
        raise ValueError(f"Numéro de téléphone invalide : {v}")
    return v.strip()


class MemberCreate(BaseModel):
    name: str
    phone: Optional[str] = None
    birth: Optional[dt.date] = None
    photo: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip()

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, v: Optional[str]) -> Optional[str]:
        return _validate_phone(v)


class MemberUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    birth: Optional[dt.date] = None
    photo: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip() if v else v

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, v: Optional[str]) -> Optional[str]:
        return _validate_phone(v)


class MemberResponse(BaseModel):
    id: int
    name: str
    phone: Optional[str]
    birth: Optional[dt.date]
    photo: Optional[str]
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MinistryCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom du ministère ne peut pas être vide.")
        return v.strip()


class MinistryResponse(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class MembershipCreate(BaseModel):
    ministry_id: int
    year: int
    part: Optional[str] = None
    grade: Optional[str] = None
    class_no: Optional[str] = None
    position: Optional[str] = None
    is_leader: bool = False

    @field_validator("year")
    @classmethod
    def valid_year(cls, v: int) -> int:
        if v < 1900 or v > 2200:
            raise ValueError("Année d'adhésion invalide.")
        return v


class MembershipResponse(BaseModel):
    id: int
    member_id: int
    ministry_id: int
    year: int
    part: Optional[str]
    grade: Optional[str]
    class_no: Optional[str]
    position: Optional[str]
    is_leader: bool
    is_active: bool

    model_config = {"from_attributes": True}


class RosterMember(BaseModel):
    """Membre d'un ministère pour une année, avec les attributs de son adhésion."""
    member: MemberResponse
    membership: MembershipResponse


class BirthdayResponse(BaseModel):
    day: dt.date
    members: List[MemberResponse]


class MonthBirthdaysResponse(BaseModel):
    year: int
    month: int
    days: Dict[int, List[MemberResponse]]
