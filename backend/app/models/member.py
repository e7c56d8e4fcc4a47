"""
Modèles SQLAlchemy pour les membres, les ministères et les adhésions annuelles.

Un membre n'est jamais supprimé physiquement : il est désactivé via
Membership.is_active. Un membre peut avoir plusieurs adhésions (années et
ministères différents) ; l'unicité (membre, ministère, année) est une
convention, pas une contrainte.
"""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, func

from app.database import Base


class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    birth = Column(Date, nullable=True)
    photo = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Ministry(Base):
    """Ministère : chorale, département jeunesse, etc. Données de référence."""
    __tablename__ = "ministry"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)


class Membership(Base):
    """Adhésion d'un membre à un ministère pour une année donnée."""
    __tablename__ = "membership"

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False)
    ministry_id = Column(Integer, ForeignKey("ministry.id", ondelete="CASCADE"), nullable=False)
    year = Column(Integer, nullable=False)

    part = Column(String(20), nullable=True)      # Pupitre (chorales) : 소프라노, 알토, ...
    grade = Column(String(10), nullable=True)     # Année scolaire (autres ministères)
    class_no = Column(String(10), nullable=True)  # Numéro de classe dans l'année
    position = Column(String(50), nullable=True)
    is_leader = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, server_default=func.now())
