"""
Projection des dates sur le calendrier : anniversaires (indépendants de l'année)
et fenêtres glissantes (semaine à venir, mois affiché).

Module pur : aucune dépendance à la base de données. Les bornes de fenêtre sont
tronquées au jour local (début / fin de journée), sans conversion de fuseau.
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

T = TypeVar("T")

BirthdayKey = Tuple[int, int]


def birthday_key(birth: date) -> BirthdayKey:
    """Clé (mois, jour) d'une date de naissance, l'année est ignorée."""
    return (birth.month, birth.day)


def build_birthday_map(
    members: Iterable[T],
    get_birth: Callable[[T], Optional[date]] = lambda m: getattr(m, "birth", None),
) -> Dict[BirthdayKey, List[T]]:
    """Indexe les membres par (mois, jour) de naissance ; les membres sans date sont ignorés."""
    birthdays: Dict[BirthdayKey, List[T]] = {}
    for member in members:
        birth = get_birth(member)
        if birth is None:
            continue
        birthdays.setdefault(birthday_key(birth), []).append(member)
    return birthdays


def birthdays_on(birthdays: Dict[BirthdayKey, List[T]], day: date) -> List[T]:
    """Membres nés un day.month/day.day, quelle que soit l'année."""
    return list(birthdays.get(birthday_key(day), []))


def birthdays_in_month(birthdays: Dict[BirthdayKey, List[T]], year: int, month: int) -> Dict[int, List[T]]:
    """Anniversaires du mois affiché, indexés par jour (seuls les jours existants de ce mois)."""
    _, last_day = calendar.monthrange(year, month)
    return {
        day: list(birthdays[(month, day)])
        for day in range(1, last_day + 1)
        if (month, day) in birthdays
    }


def window_bounds(today: date, days: int) -> Tuple[datetime, datetime]:
    """Fenêtre [début de journée d'aujourd'hui, fin de journée d'aujourd'hui + days]."""
    if days < 0:
        raise ValueError("La taille de la fenêtre doit être positive.")
    start = datetime.combine(today, time.min)
    end = datetime.combine(today + timedelta(days=days), time.max)
    return start, end


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    _, last_day = calendar.monthrange(year, month)
    return (
        datetime.combine(date(year, month, 1), time.min),
        datetime.combine(date(year, month, last_day), time.max),
    )


def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    return None


def _ministry_order(ministry_id: Optional[int]) -> Tuple[int, int]:
    return (1, 0) if ministry_id is None else (0, ministry_id)


def filter_window(
    entries: Iterable[T],
    start: datetime,
    end: datetime,
    get_date: Callable[[T], Any] = lambda e: getattr(e, "singdate", None),
    get_ministry: Callable[[T], Optional[int]] = lambda e: getattr(e, "ministry_id", None),
) -> List[T]:
    """
    Entrées dont la date tombe dans [start, end] (bornes incluses),
    triées par date croissante puis par ministère croissant (sans ministère en dernier).
    Les entrées sans date sont exclues.
    """
    selected = []
    for entry in entries:
        moment = _as_datetime(get_date(entry))
        if moment is None:
            continue
        if start <= moment <= end:
            selected.append((moment, _ministry_order(get_ministry(entry)), entry))
    selected.sort(key=lambda item: (item[0], item[1]))
    return [entry for _, _, entry in selected]


def upcoming(entries: Iterable[T], today: date, days: int = 7, **kwargs) -> List[T]:
    """Entrées d'aujourd'hui à aujourd'hui + days inclus."""
    start, end = window_bounds(today, days)
    return filter_window(entries, start, end, **kwargs)
