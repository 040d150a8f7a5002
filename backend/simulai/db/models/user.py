from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from simulai.db.database import Base

ROLE_USER = "user"
ROLE_COMPANY = "company"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_COMPANY, ROLE_ADMIN)

#SH: Many-to-Many Relationship Table
user_departments = Table(
    "user_departments",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("department_id", Integer, ForeignKey("departments.id", ondelete="CASCADE"), primary_key=True),
)

# MJ: This is the database model used for Migrations & CRUD operations
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    lastname = Column(String(100), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_USER)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True)
    profile_image = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # SH: Relationships with company and departments
    company = relationship("Company", foreign_keys=[company_id], back_populates="users", lazy="selectin")
    departments = relationship("Department", secondary=user_departments, back_populates="users", lazy="selectin")

    @property
    def department_ids(self) -> list[int]:
        return sorted(department.id for department in self.departments)
