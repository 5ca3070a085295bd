from sqlalchemy import Column, DateTime, Integer, String

from repairshop.core.clock import utcnow
from repairshop.core.database import Base
from repairshop.models.enums import GlobalRole, UserStatus


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    email = Column(String, unique=True, index=True, nullable=False)
    telephone_number = Column(String, unique=True, index=True, nullable=True)
    password_hash = Column(String, nullable=False)

    role = Column(String, nullable=False, default=GlobalRole.USER.value, index=True)  # user | superadmin
    status = Column(String, nullable=False, default=UserStatus.ACTIVE.value, index=True)  # active | disabled
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
