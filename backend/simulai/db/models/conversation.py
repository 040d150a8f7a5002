from sqlalchemy import Column, Integer, DateTime, ForeignKey, JSON, Float, UniqueConstraint
from sqlalchemy.sql import func
from simulai.db.database import Base

#SH: This is database model used for Migrations & CRUD operations
class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True)
    scenario_id = Column(Integer, ForeignKey("scenarios.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    #SH: [{"role": "user"|"assistant", "message": str, "audio_url": str|None}]
    conversation = Column(JSON, nullable=False, default=list)
    #SH: [{"timestamp": ..., "expressions": {"happy": 0.8, ...}}]
    facial_expressions = Column(JSON, nullable=False, default=list)
    elapsed_time = Column(Float, nullable=False, default=0)  # seconds
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

#SH: Elapsed seconds of a session that has not been saved as a conversation yet
class SessionState(Base):
    __tablename__ = "session_states"

    id = Column(Integer, primary_key=True)
    scenario_id = Column(Integer, ForeignKey("scenarios.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    elapsed_time = Column(Float, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("scenario_id", "user_id", name="uq_session_state_scenario_user"),
    )
