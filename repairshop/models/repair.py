from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from repairshop.core.clock import utcnow
from repairshop.core.database import Base
from repairshop.models.enums import RepairStatus


class Repair(Base):
    __tablename__ = "repairs"

    id = Column(Integer, primary_key=True, index=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id"), nullable=False, index=True)
    created_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_to_user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    status = Column(String, nullable=False, default=RepairStatus.IN_PROGRESS.value, index=True)

    # Snapshot taken at creation; not a reference to any user.
    customer_name = Column(String, nullable=False)
    customer_telephone_number = Column(String, nullable=False)

    item_type = Column(String, nullable=True)
    item_brand = Column(String, nullable=True)
    item_model = Column(String, nullable=True)
    item_serial_number = Column(String, nullable=True)

    issue_description = Column(Text, nullable=False)
    received_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
