"""
Service métier pour le calendrier des chants et événements.
CRUD des entrées et fenêtre glissante de la page d'accueil (semaine à venir).
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.calendar import SONG_TYPES, CalendarEvent
from app.models.member import Ministry
from app.schemas.calendar import (
    FourPartLinkEntry,
    FourPartLinkResponse,
    SingleLinkEntry,
    SingleLinkResponse,
    TextEntry,
    TextResponse,
    UpcomingGroup,
    UpcomingResponse,
)
from app.services import recurrence
from app.services.roster import BUCKET_UNKNOWN

logger = logging.getLogger(__name__)

EntryCreate = Union[SingleLinkEntry, FourPartLinkEntry, TextEntry]
EntryResponse = Union[SingleLinkResponse, FourPartLinkResponse, TextResponse]

# Colonnes propres à chaque variante : remises à NULL quand la variante change
VARIANT_COLUMNS = ("link", "soprano_link", "alto_link", "tenor_link", "bass_link", "all_link", "content")


def to_entry(event: CalendarEvent) -> EntryResponse:
    """Convertit une ligne en variante typée selon son `type` (type inconnu → texte)."""
    common = {
        "id": event.id,
        "title": event.title,
        "singdate": event.singdate,
        "ministry_id": event.ministry_id,
    }
    if event.type == "single-link":
        return SingleLinkResponse(link=event.link, **common)
    if event.type == "four-part-link":
        return FourPartLinkResponse(
            soprano_link=event.soprano_link,
            alto_link=event.alto_link,
            tenor_link=event.tenor_link,
            bass_link=event.bass_link,
            all_link=event.all_link,
            **common,
        )
    return TextResponse(content=event.content, **common)


def _apply(event: CalendarEvent, data: EntryCreate) -> None:
    for column in VARIANT_COLUMNS:
        setattr(event, column, None)
    for field, value in data.model_dump().items():
        setattr(event, field, value)


def create_entry(db: Session, data: EntryCreate) -> EntryResponse:
    event = CalendarEvent()
    _apply(event, data)
    db.add(event)
    db.commit()
    db.refresh(event)
    return to_entry(event)


def get_entries(db: Session, ministry_id: Optional[int] = None) -> List[EntryResponse]:
    """Toutes les entrées, de la plus récente à la plus ancienne."""
    stmt = select(CalendarEvent).order_by(CalendarEvent.singdate.desc(), CalendarEvent.id.desc())
    if ministry_id is not None:
        stmt = stmt.where(CalendarEvent.ministry_id == ministry_id)
    return [to_entry(e) for e in db.execute(stmt).scalars().all()]


def get_entry(db: Session, entry_id: int) -> Optional[EntryResponse]:
    event = db.get(CalendarEvent, entry_id)
    if event is None:
        return None
    return to_entry(event)


def update_entry(db: Session, entry_id: int, data: EntryCreate) -> Optional[EntryResponse]:
    """Remplace l'entrée ; les champs de l'ancienne variante sont effacés."""
    event = db.get(CalendarEvent, entry_id)
    if event is None:
        return None
    _apply(event, data)
    db.commit()
    db.refresh(event)
    return to_entry(event)


def delete_entry(db: Session, entry_id: int) -> bool:
    event = db.get(CalendarEvent, entry_id)
    if event is None:
        return False
    db.delete(event)
    db.commit()
    return True


def group_by_ministry(entries: Iterable[EntryResponse], ministry_names: Dict[int, str]) -> List[UpcomingGroup]:
    """
    Regroupe les entrées par ministère (id croissant, sans ministère en dernier)
    en conservant l'ordre reçu, et sépare chants (liens) et événements (texte).
    """
    buckets: Dict[Optional[int], List[EntryResponse]] = {}
    for entry in entries:
        buckets.setdefault(entry.ministry_id, []).append(entry)

    ordered_ids = sorted(buckets, key=lambda mid: (mid is None, mid or 0))
    groups = []
    for ministry_id in ordered_ids:
        items = buckets[ministry_id]
        if ministry_id is None:
            name = BUCKET_UNKNOWN
        else:
            name = ministry_names.get(ministry_id, f"#{ministry_id}")
        groups.append(UpcomingGroup(
            ministry_id=ministry_id,
            ministry_name=name,
            songs=[e for e in items if e.type in SONG_TYPES],
            schedules=[e for e in items if e.type not in SONG_TYPES],
        ))
    return groups


def get_upcoming(db: Session, today: date, days: int) -> UpcomingResponse:
    """Entrées d'aujourd'hui à aujourd'hui + days (inclus), par date puis par ministère."""
    start, end = recurrence.window_bounds(today, days)
    events = db.execute(
        select(CalendarEvent).where(
            CalendarEvent.singdate >= start.date(),
            CalendarEvent.singdate <= end.date(),
        )
    ).scalars().all()

    entries = recurrence.filter_window([to_entry(e) for e in events], start, end)
    ministry_names = {
        m.id: m.name for m in db.execute(select(Ministry)).scalars().all()
    }

    logger.debug("Fenêtre %s → %s : %d entrées", start.date(), end.date(), len(entries))
    return UpcomingResponse(
        start=start.date(),
        end=end.date(),
        groups=group_by_ministry(entries, ministry_names),
    )
