# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# Sans cet import, les FK comme attend.member_id → members.id échouent
# avec NoReferencedTableError si member.py n'est pas chargé avant attendance.py.

from app.models.member import Member, Ministry, Membership  # noqa: F401  doit précéder les autres
from app.models.attendance import Attendance  # noqa: F401
from app.models.point import MemberPoint, PointLedger  # noqa: F401
from app.models.calendar import CalendarEvent  # noqa: F401
from app.models.party import Party, PartyMember  # noqa: F401
