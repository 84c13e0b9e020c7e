from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func

Base = declarative_base()

class StoredItem(Base):
    __tablename__ = "stored_item"
    id = Column(Integer, primary_key=True)
    key = Column(String, unique=True, index=True)   # 'tasks' | 'customHolidays'
    value = Column(Text)                             # raw JSON text
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())
