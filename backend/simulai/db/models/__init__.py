# MJ: Every model is imported here so Base.metadata sees the full schema
from simulai.db.models.company import Company, Department
from simulai.db.models.user import User, user_departments
from simulai.db.models.scenario import Scenario
from simulai.db.models.conversation import Conversation, SessionState
from simulai.db.models.report import Report
from simulai.db.models.settings import AppSettings
from simulai.db.models.password_reset import PasswordReset

__all__ = [
    "Company",
    "Department",
    "User",
    "user_departments",
    "Scenario",
    "Conversation",
    "SessionState",
    "Report",
    "AppSettings",
    "PasswordReset",
]
