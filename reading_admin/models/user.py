from sqlalchemy import Column, Integer, String, DateTime, func
from reading_admin.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)
    role = Column(String, nullable=False, default="editor")  # admin, editor
    created_at = Column(DateTime(timezone=True), server_default=func.now())
