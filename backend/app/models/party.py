"""
Modèles SQLAlchemy pour les rencontres de petits groupes (party) et leurs réponses.
"""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, Time, UniqueConstraint, func

from app.database import Base

PARTY_STATUSES = ("attending", "not-attending", "undecided")


class Party(Base):
    __tablename__ = "party"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    party_date = Column(Date, nullable=False)
    location = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=True)   # Période d'inscription
    end_date = Column(Date, nullable=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class PartyMember(Base):
    """Réponse d'un membre à une rencontre."""
    __tablename__ = "party_members"
    __table_args__ = (
        UniqueConstraint("party_id", "member_id", name="uq_party_member"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    party_id = Column(Integer, ForeignKey("party.id", ondelete="CASCADE"), nullable=False)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False)   # attending, not-attending, undecided
    memo = Column(Text, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
