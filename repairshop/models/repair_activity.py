from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text

from repairshop.core.clock import utcnow
from repairshop.core.database import Base


class RepairActivity(Base):
    __tablename__ = "repair_activities"

    id = Column(Integer, primary_key=True, index=True)
    repair_id = Column(Integer, ForeignKey("repairs.id"), nullable=False, index=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id"), nullable=False, index=True)
    actor_user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    type = Column(String, nullable=False, index=True)  # created | status_changed | note_added | updated
    from_status = Column(String, nullable=True)
    to_status = Column(String, nullable=True)
    note = Column(Text, nullable=True)
    # "metadata" is reserved on declarative models.
    meta = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
