from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from simulai.db.database import Base

# MJ: Singleton row. String columns hold encrypted values (see core.security)
class AppSettings(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True)

    # AI keys
    openai_key = Column(Text, nullable=True)
    mistral_key = Column(Text, nullable=True)
    llama_key = Column(Text, nullable=True)
    heygen_key = Column(Text, nullable=True)

    # Mail
    mail_username = Column(Text, nullable=True)
    mail_password = Column(Text, nullable=True)
    mail_host = Column(Text, nullable=True)
    mail_port = Column(Integer, nullable=True)
    mail_from = Column(Text, nullable=True)
    mail_from_name = Column(Text, nullable=True)

    # AWS
    aws_access_key = Column(Text, nullable=True)
    aws_secret_key = Column(Text, nullable=True)
    aws_region = Column(Text, nullable=True)
    aws_bucket = Column(Text, nullable=True)
    aws_bucket_url = Column(Text, nullable=True)

    # Prompts
    avatar_prompt_template = Column(Text, nullable=True)
    report_prompt_template = Column(Text, nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

SETTINGS_FIELDS = (
    "openai_key", "mistral_key", "llama_key", "heygen_key",
    "mail_username", "mail_password", "mail_host", "mail_port", "mail_from", "mail_from_name",
    "aws_access_key", "aws_secret_key", "aws_region", "aws_bucket", "aws_bucket_url",
    "avatar_prompt_template", "report_prompt_template",
)
