"""
Tests unitaires des projections de dates : anniversaires et fenêtres glissantes.
"""

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from app.services.recurrence import (
    birthday_key,
    birthdays_in_month,
    birthdays_on,
    build_birthday_map,
    filter_window,
    month_bounds,
    upcoming,
    window_bounds,
)


def member(name, birth):
    return SimpleNamespace(name=name, birth=birth)


def entry(title, singdate, ministry_id=None):
    return SimpleNamespace(title=title, singdate=singdate, ministry_id=ministry_id)


# ============================================================
# Anniversaires
# ============================================================

def test_anniversaire_independant_de_l_annee():
    """Né le 1980-03-15 → listé le 2024-03-15 et le 2030-03-15, pas le 2024-03-16."""
    kim = member("김", date(1980, 3, 15))
    birthdays = build_birthday_map([kim])

    assert birthdays_on(birthdays, date(2024, 3, 15)) == [kim]
    assert birthdays_on(birthdays, date(2030, 3, 15)) == [kim]
    assert birthdays_on(birthdays, date(2024, 3, 16)) == []


def test_membres_sans_date_ignores():
    birthdays = build_birthday_map([member("a", None), member("b", date(2000, 1, 1))])
    assert list(birthdays) == [(1, 1)]


def test_plusieurs_membres_meme_jour():
    a = member("a", date(1990, 12, 25))
    b = member("b", date(2005, 12, 25))
    assert birthdays_on(build_birthday_map([a, b]), date(2024, 12, 25)) == [a, b]


def test_accesseur_personnalise():
    rows = [{"name": "a", "born": date(1999, 7, 4)}]
    birthdays = build_birthday_map(rows, get_birth=lambda r: r["born"])
    assert birthday_key(date(1999, 7, 4)) in birthdays


def test_29_fevrier_seulement_les_annees_bissextiles():
    leap = member("leap", date(2000, 2, 29))
    birthdays = build_birthday_map([leap])

    assert birthdays_in_month(birthdays, 2024, 2) == {29: [leap]}
    assert birthdays_in_month(birthdays, 2023, 2) == {}
    assert birthdays_on(birthdays, date(2023, 3, 1)) == []


def test_anniversaires_du_mois_par_jour():
    a = member("a", date(1980, 3, 15))
    b = member("b", date(1975, 3, 1))
    c = member("c", date(1975, 4, 1))
    by_day = birthdays_in_month(build_birthday_map([a, b, c]), 2024, 3)
    assert by_day == {1: [b], 15: [a]}


# ============================================================
# Fenêtres glissantes
# ============================================================

def test_bornes_de_fenetre_au_jour():
    start, end = window_bounds(date(2024, 6, 1), 7)
    assert start == datetime(2024, 6, 1, 0, 0, 0)
    assert end.date() == date(2024, 6, 8)
    assert (end.hour, end.minute, end.second) == (23, 59, 59)


def test_fenetre_negative_rejetee():
    with pytest.raises(ValueError):
        window_bounds(date(2024, 6, 1), -1)


def test_semaine_a_venir_bornes_incluses():
    """today = 2024-06-01, N = 7 → le 2024-06-08 est inclus, le 2024-06-09 exclu."""
    entries = [
        entry("veille", date(2024, 5, 31)),
        entry("aujourd'hui", date(2024, 6, 1)),
        entry("dernier jour", date(2024, 6, 8)),
        entry("trop tard", date(2024, 6, 9)),
    ]
    titles = [e.title for e in upcoming(entries, date(2024, 6, 1), 7)]
    assert titles == ["aujourd'hui", "dernier jour"]


def test_tri_par_date_puis_ministere():
    entries = [
        entry("c", date(2024, 6, 3), ministry_id=None),
        entry("b", date(2024, 6, 3), ministry_id=2),
        entry("a", date(2024, 6, 3), ministry_id=1),
        entry("z", date(2024, 6, 2), ministry_id=9),
    ]
    titles = [e.title for e in upcoming(entries, date(2024, 6, 1))]
    assert titles == ["z", "a", "b", "c"]


def test_entrees_sans_date_exclues():
    entries = [entry("sans date", None), entry("ok", date(2024, 6, 2))]
    assert [e.title for e in upcoming(entries, date(2024, 6, 1))] == ["ok"]


def test_fenetre_avec_datetime():
    start, end = window_bounds(date(2024, 6, 1), 0)
    entries = [{"at": datetime(2024, 6, 1, 23, 0)}, {"at": datetime(2024, 6, 2, 0, 0)}]
    selected = filter_window(entries, start, end, get_date=lambda e: e["at"], get_ministry=lambda e: None)
    assert selected == [entries[0]]


def test_bornes_du_mois():
    start, end = month_bounds(2024, 2)
    assert start.date() == date(2024, 2, 1)
    assert end.date() == date(2024, 2, 29)
