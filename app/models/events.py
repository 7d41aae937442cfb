from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database.db import Base

MAX_CAPACITY = 1000


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint(f"capacity >= 1 AND capacity <= {MAX_CAPACITY}", name="ck_events_capacity_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    date_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Seats taken are always counted from live rows, never stored here
    registrations: Mapped[list["Registration"]] = relationship(
        back_populates="event", cascade="all", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title!r}, capacity={self.capacity})>"
