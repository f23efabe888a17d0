"""
Core database models.
Contains: Question, Admin
"""
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, Index

from app.db import Base


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite hands back naive datetimes, so we store them that way."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class Language(str, Enum):
    CPP = "cpp"
    JAVA = "java"
    PYTHON = "python"
    JAVASCRIPT = "javascript"


class Question(Base):
    """Question model - one solved DSA problem shown on the site"""
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    chapter = Column(String(200), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    code = Column(Text, nullable=False)
    output = Column(Text, nullable=False, default="")
    difficulty = Column(String(20), nullable=False, default=Difficulty.MEDIUM.value)
    language = Column(String(20), nullable=False, default=Language.CPP.value)
    explanation = Column(Text, nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    file_name = Column(String(255), nullable=True)  # suggested name when downloading the code
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Sidebar and search both read in (chapter, title) order.
    __table_args__ = (Index("ix_questions_chapter_title", "chapter", "title"),)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "chapter": self.chapter,
            "title": self.title,
            "code": self.code,
            "output": self.output,
            "difficulty": self.difficulty,
            "language": self.language,
            "explanation": self.explanation,
            "tags": list(self.tags or []),
            "file_name": self.file_name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Admin(Base):
    """Admin model - privileged identity allowed to manage questions"""
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(150), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(150), unique=True, index=True, nullable=False)
    password_hash = Column(String(256), nullable=False)
    # Both set or both NULL.
    reset_password_token = Column(String(64), unique=True, index=True, nullable=True)
    reset_password_expires = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "username": self.username,
        }
