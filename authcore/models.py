# authcore/models.py
from sqlalchemy import Boolean, Column, DateTime, Integer, String, func
from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    location = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    verified = Column(Boolean, default=False, nullable=False)
    otp = Column(Integer, nullable=True)
    otp_issued_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<User id={self.id} email={self.email!r} verified={self.verified}>"
