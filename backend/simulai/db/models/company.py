from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from simulai.db.database import Base

# SH: This database model used for Migrations & CRUD operations
class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    logo = Column(String(1024), nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # SH:Relationships with departments and users
    departments = relationship(
        "Department",
        back_populates="company",
        cascade="all, delete-orphan",
        order_by="Department.id",
        lazy="selectin",
    )
    users = relationship("User", foreign_keys="User.company_id", back_populates="company")

class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    company = relationship("Company", back_populates="departments")
    users = relationship("User", secondary="user_departments", back_populates="departments")
