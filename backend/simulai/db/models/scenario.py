from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from simulai.db.database import Base

STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"
STATUS_ARCHIVED = "archived"
SCENARIO_STATUSES = (STATUS_DRAFT, STATUS_PUBLISHED, STATUS_ARCHIVED)

AI_PROVIDERS = ("openai", "mistral", "llama")

# MJ: This is database model used for Migrations & CRUD operations
class Scenario(Base):
    __tablename__ = "scenarios"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    context = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=STATUS_DRAFT)
    user_id_assigned = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    user_id_created = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    parent_scenario = Column(Integer, ForeignKey("scenarios.id", ondelete="SET NULL"), nullable=True)
    aspects = Column(JSON, nullable=False, default=list)
    files = Column(JSON, nullable=False, default=list)
    pdf_contents = Column(Text, nullable=True)

    # SH: Column for AI / avatar configuration
    assigned_ia = Column(String(20), nullable=True, default="openai")
    assigned_ia_model = Column(String(100), nullable=True)
    interactive_avatar = Column(String(255), nullable=True)
    avatar_language = Column(String(10), nullable=True)
    generated_image_url = Column(String(1024), nullable=True)
    show_image_prompt = Column(Boolean, default=False, nullable=False)
    time_limit = Column(Integer, nullable=True)  # minutes

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # SH: Relationships with users
    assigned_user = relationship("User", foreign_keys=[user_id_assigned], lazy="selectin")
    created_by_user = relationship("User", foreign_keys=[user_id_created], lazy="selectin")
