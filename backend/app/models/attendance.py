"""
Modèle SQLAlchemy pour les feuilles d'appel.

Une ligne par (date, ministère, round, membre). Une fois is_confirmed passé à
True, la ligne n'est plus modifiable ni supprimable : seul le flux de
confirmation (ledger_service) écrit ce drapeau.
"""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func

from app.database import Base

ATTENDANCE_STATUSES = ("present", "late", "absent")
ROUNDS = ("1", "2", "3")


class Attendance(Base):
    __tablename__ = "attend"
    __table_args__ = (
        UniqueConstraint("attendance_date", "ministry_id", "round", "member_id", name="uq_attend_sheet_member"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    attendance_date = Column(Date, nullable=False)
    ministry_id = Column(Integer, ForeignKey("ministry.id", ondelete="CASCADE"), nullable=False)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False)
    round = Column(String(2), nullable=False, default="1")

    status = Column(String(10), nullable=True)   # present, late, absent ou NULL (non saisi)
    memo = Column(Text, nullable=True)
    is_confirmed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now())
