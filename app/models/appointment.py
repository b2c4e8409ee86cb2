# app/models/appointment.py
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    func,
)

from app.db.base import Base


class Appointment(Base):
    """
    Stored appointment rule: either a one-off appointment or the definition of
    a recurring series.

    Concrete occurrences are never stored; they are expanded from these rows
    on every calendar query.
    """

    __tablename__ = "appointments"

    id = Column(String(64), primary_key=True, index=True)

    title = Column(String(255), nullable=True)
    customer_id = Column(String(64), nullable=True, index=True)
    customer_name = Column(String(255), nullable=True)

    # Anchor date ("YYYY-MM-DD"): the single date, or the first occurrence of a series.
    date = Column(String(10), nullable=False, index=True)
    time = Column(String(5), nullable=True)

    location = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    meeting_type = Column(String(32), nullable=True, index=True)
    status = Column(String(16), nullable=False, default="scheduled")

    recurrence_type = Column(String(16), nullable=False, default="none")
    recurrence_interval = Column(Integer, nullable=False, default=1)
    recurrence_days = Column(JSON, nullable=False, default=list)
    recurrence_end_date = Column(String(10), nullable=True)
    is_lunar = Column(Boolean, nullable=False, default=False)

    # Suppressed occurrence dates. Always reassign the list; in-place
    # mutation is not tracked by the JSON column.
    exceptions = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"<Appointment id={self.id} date={self.date} "
            f"recurrence={self.recurrence_type} meeting_type={self.meeting_type}>"
        )
