# backend/models/log.py
from sqlalchemy import Column, Integer, String, DateTime, JSON, func
from database import Base

# Operator-facing audit trail of configurator checkout attempts
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)

    # Event timestamp and core action details
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    session_id = Column(String(64), nullable=True, index=True)
    action = Column(String(50), index=True)
    resource = Column(String(50), index=True)
    status = Column(String(20), index=True)

    # Submitted items, failure reason, cart count
    meta = Column(JSON, nullable=True)
