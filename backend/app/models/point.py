"""
Modèles SQLAlchemy pour le registre de points.

- PointLedger : journal append-only, jamais modifié ni supprimé.
- MemberPoint : solde courant par membre, projection du journal mise à jour
  dans la même transaction que chaque écriture.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func

from app.database import Base

SOURCE_ATTENDANCE = "attendance"
SOURCE_BONUS = "bonus"


class PointLedger(Base):
    __tablename__ = "point_ledger"
    __table_args__ = (
        # Une présence n'est créditée qu'une fois (source_id NULL pour les bonus → non contraint)
        UniqueConstraint("source_type", "source_id", name="uq_point_ledger_source"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    delta = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    reason = Column(String(100), nullable=True)
    source_type = Column(String(20), nullable=False)       # attendance, bonus
    source_subtype = Column(String(50), nullable=True)     # Catégorie libre des bonus
    source_id = Column(Integer, nullable=True)             # attend.id pour source_type=attendance
    memo = Column(Text, nullable=True)
    occurred_at = Column(DateTime, nullable=False, server_default=func.now())


class MemberPoint(Base):
    """Solde courant, id = members.id."""
    __tablename__ = "member_points"

    id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), primary_key=True, autoincrement=False)
    balance = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
