"""
Schémas Pydantic pour le calendrier des chants et événements.

Union discriminée sur `type` : chaque variante ne porte que ses propres champs.
- single-link    : un lien unique
- four-part-link : un lien par pupitre (au moins un) + lien d'ensemble optionnel
- text           : texte libre (événement)
"""

import datetime as dt
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class _EntryBase(BaseModel):
    title: str
    singdate: dt.date
    ministry_id: Optional[int] = None

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le titre ne peut pas être vide.")
        return v.strip()


class SingleLinkEntry(_EntryBase):
    type: Literal["single-link"] = "single-link"
    link: str

    @field_validator("link")
    @classmethod
    def link_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le lien est obligatoire.")
        return v.strip()


class FourPartLinkEntry(_EntryBase):
    type: Literal["four-part-link"] = "four-part-link"
    soprano_link: Optional[str] = None
    alto_link: Optional[str] = None
    tenor_link: Optional[str] = None
    bass_link: Optional[str] = None
    all_link: Optional[str] = None

    @model_validator(mode="after")
    def at_least_one_part(self) -> "FourPartLinkEntry":
        parts = (self.soprano_link, self.alto_link, self.tenor_link, self.bass_link)
        if not any(p and p.strip() for p in parts):
            raise ValueError("Au moins un lien de pupitre est obligatoire.")
        return self


class TextEntry(_EntryBase):
    type: Literal["text"] = "text"
    content: Optional[str] = None


CalendarEntryCreate = Annotated[
    Union[SingleLinkEntry, FourPartLinkEntry, TextEntry],
    Field(discriminator="type"),
]


class SingleLinkResponse(SingleLinkEntry):
    id: int


class FourPartLinkResponse(FourPartLinkEntry):
    id: int


class TextResponse(TextEntry):
    id: int


CalendarEntryResponse = Annotated[
    Union[SingleLinkResponse, FourPartLinkResponse, TextResponse],
    Field(discriminator="type"),
]


class UpcomingGroup(BaseModel):
    """Entrées de la fenêtre pour un ministère, séparées en chants et événements."""
    ministry_id: Optional[int]
    ministry_name: str
    songs: List[CalendarEntryResponse]
    schedules: List[CalendarEntryResponse]


class UpcomingResponse(BaseModel):
    start: dt.date
    end: dt.date
    groups: List[UpcomingGroup]
