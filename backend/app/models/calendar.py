"""
Modèle SQLAlchemy pour le calendrier des chants et événements.

Le champ `type` discrimine les colonnes renseignées :
- single-link    : link
- four-part-link : soprano/alto/tenor/bass/all_link (au moins un)
- text           : content
Les colonnes des autres variantes restent NULL (voir schemas/calendar.py).
"""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, func

from app.database import Base

ENTRY_TYPES = ("single-link", "four-part-link", "text")
SONG_TYPES = ("single-link", "four-part-link")


class CalendarEvent(Base):
    __tablename__ = "calendar_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    singdate = Column(Date, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)

    link = Column(String(500), nullable=True)
    soprano_link = Column(String(500), nullable=True)
    alto_link = Column(String(500), nullable=True)
    tenor_link = Column(String(500), nullable=True)
    bass_link = Column(String(500), nullable=True)
    all_link = Column(String(500), nullable=True)
    content = Column(Text, nullable=True)

    ministry_id = Column(Integer, ForeignKey("ministry.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
