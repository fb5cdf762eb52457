"""Declarative models for progression bot persistence."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    type_annotation_map = {
        date: Date(),
        datetime: DateTime(timezone=True),
    }


class AthleteRecord(Base):
    """Persistent representation of a trainee or staff account."""

    __tablename__ = "athletes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(16), default="trainee", nullable=False)
    telegram_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    blocks: Mapped[list["BlockRecord"]] = relationship(
        back_populates="athlete", cascade="all, delete-orphan", order_by="BlockRecord.number"
    )


class BlockRecord(Base):
    """Training block of one athlete."""

    __tablename__ = "blocks"
    __table_args__ = (UniqueConstraint("athlete_id", "number", name="uq_blocks_athlete_number"),)

    id: Mapped[str] = mapped_column(String(96), primary_key=True)
    athlete_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False
    )
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    duration_weeks: Mapped[int] = mapped_column(Integer, nullable=False)

    athlete: Mapped[AthleteRecord] = relationship(back_populates="blocks")
    sessions: Mapped[list["SessionRecord"]] = relationship(
        back_populates="block", cascade="all, delete-orphan"
    )


class SessionRecord(Base):
    """Generated session inside a block week."""

    __tablename__ = "training_sessions"
    __table_args__ = (Index("ix_training_sessions_athlete", "athlete_id"),)

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    athlete_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False
    )
    block_id: Mapped[str] = mapped_column(
        String(96), ForeignKey("blocks.id", ondelete="CASCADE"), nullable=False
    )
    block_number: Mapped[int] = mapped_column(Integer, nullable=False)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    session_number: Mapped[int] = mapped_column(Integer, nullable=False)
    session_type: Mapped[str] = mapped_column(String(16), nullable=False)
    release_date: Mapped[date] = mapped_column(Date, nullable=False)

    block: Mapped[BlockRecord] = relationship(back_populates="sessions")


class ResultRow(Base):
    """Submitted or drafted result keyed by session."""

    __tablename__ = "session_results"

    session_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("training_sessions.id", ondelete="CASCADE"), primary_key=True
    )
    athlete_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    session_type: Mapped[str] = mapped_column(String(16), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    schema_version: Mapped[str] = mapped_column(String(16), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class LedgerRecord(Base):
    """Single XP award."""

    __tablename__ = "xp_ledger"
    __table_args__ = (
        UniqueConstraint("athlete_id", "source", "reference", name="uq_xp_ledger_award"),
        Index("ix_xp_ledger_athlete_awarded", "athlete_id", "awarded_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    athlete_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    reference: Mapped[str] = mapped_column(String(160), nullable=False)
    awarded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class SnapshotRecord(Base):
    """Cached totals of one athlete."""

    __tablename__ = "stat_snapshots"

    athlete_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("athletes.id", ondelete="CASCADE"), primary_key=True
    )
    total_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    consistency_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    completed_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    released_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
