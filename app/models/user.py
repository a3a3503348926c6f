from datetime import datetime

from sqlalchemy import Column, DateTime, String

from app.database.connection import Base, new_id
from app.enums.user_roles import UserRole


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.user.value, index=True)

    # admin accounts authenticate with email + password, user accounts with phone number;
    # unique columns allow many NULLs
    email = Column(String, unique=True, nullable=True, index=True)
    phone_number = Column(String, unique=True, nullable=True, index=True)
    hashed_password = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin.value
