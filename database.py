import os
from typing import Optional
from sqlalchemy import create_engine, ForeignKey
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Mapped, mapped_column
from sqlalchemy import Boolean, Integer, String, DateTime, Text
from datetime import datetime
from dotenv import load_dotenv

load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set. Please define it in .env")

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, pool_pre_ping=True, future=True, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

class Base(DeclarativeBase):
    pass

class Quiz(Base):
    __tablename__ = "quizzes"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    url: Mapped[str] = mapped_column(String(1024), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    date_generated: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    scraped_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    questions_data: Mapped[str] = mapped_column(Text, nullable=False)  # JSON list of questions

class Attempt(Base):
    __tablename__ = "attempts"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    quiz_id: Mapped[int] = mapped_column(ForeignKey("quizzes.id"), nullable=False, index=True)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    answers_data: Mapped[str] = mapped_column(Text, nullable=False)  # JSON list of index lists
    completed: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    date_submitted: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

def init_db():
    """Initialize database tables. Creates tables if they don't exist."""
    Base.metadata.create_all(bind=engine)
