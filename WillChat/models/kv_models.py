from sqlalchemy import Column, DateTime, String, Text, func

from WillChat.database import Base


# Stores opaque string values by key (serialized conversations, active id, preferences)
class KeyValueEntry(Base):
    __tablename__ = "kv_store"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
