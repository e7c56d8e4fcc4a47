"""
Tests d'intégration API pour le calendrier.
"""

from datetime import date
from unittest.mock import patch

from app.schemas.calendar import (
    FourPartLinkEntry,
    SingleLinkResponse,
    TextResponse,
    UpcomingGroup,
    UpcomingResponse,
)


def test_create_entry_variante_quatre_pupitres(client):
    with patch("app.routers.calendar.calendar_service.create_entry") as mock:
        mock.return_value = SingleLinkResponse(id=1, title="찬양", singdate=date(2024, 6, 2), link="l")
        response = client.post("/api/v1/calendar", json={
            "type": "four-part-link", "title": "찬양", "singdate": "2024-06-02",
            "soprano_link": "https://example.org/s",
        })
    assert response.status_code == 201
    assert isinstance(mock.call_args.args[1], FourPartLinkEntry)


def test_create_entry_sans_pupitre(client):
    response = client.post("/api/v1/calendar", json={
        "type": "four-part-link", "title": "찬양", "singdate": "2024-06-02",
    })
    assert response.status_code == 422


def test_create_entry_type_inconnu(client):
    response = client.post("/api/v1/calendar", json={"type": "video", "title": "x", "singdate": "2024-06-02"})
    assert response.status_code == 422


def test_get_entry_introuvable(client):
    with patch("app.routers.calendar.calendar_service.get_entry", return_value=None):
        response = client.get("/api/v1/calendar/5")
    assert response.status_code == 404


def test_delete_entry(client):
    with patch("app.routers.calendar.calendar_service.delete_entry", return_value=True):
        response = client.delete("/api/v1/calendar/5")
    assert response.status_code == 204


def test_semaine_a_venir_par_defaut(client):
    """Sans paramètre, la fenêtre est de settings.UPCOMING_DAYS jours à partir d'aujourd'hui."""
    with patch("app.routers.calendar.calendar_service.get_upcoming") as mock:
        mock.return_value = UpcomingResponse(start=date.today(), end=date.today(), groups=[])
        response = client.get("/api/v1/calendar/upcoming")
    assert response.status_code == 200
    assert mock.call_args.args[1:] == (date.today(), 7)


def test_semaine_a_venir_groupes(client):
    with patch("app.routers.calendar.calendar_service.get_upcoming") as mock:
        mock.return_value = UpcomingResponse(
            start=date(2024, 6, 1), end=date(2024, 6, 8),
            groups=[UpcomingGroup(
                ministry_id=None, ministry_name="기타", songs=[],
                schedules=[TextResponse(id=3, title="수련회", singdate=date(2024, 6, 8))],
            )],
        )
        response = client.get("/api/v1/calendar/upcoming", params={"today": "2024-06-01", "days": 7})
    body = response.json()
    assert body["groups"][0]["schedules"][0]["type"] == "text"
