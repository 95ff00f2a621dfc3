# tourapi/models/tour.py
from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, func, text, true
)
from sqlalchemy.orm import relationship

from tourapi.db.base_class import Base

# Draft -> Pending -> Completed (un solo sentido, sin saltos)
TOUR_STATUSES = ("Draft", "Pending", "Completed")
ACTIVITY_TYPES = ("CompanyVisit", "Hotel", "Restaurant", "Travel", "Discussion")


class Tour(Base):
    __tablename__ = "tours"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="tours_date_check"),
        CheckConstraint("status IN ('Draft', 'Pending', 'Completed')", name="tours_status_check"),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, server_default="Draft", index=True)
    post_tour_access_days = Column(Integer, server_default=text("30"))
    enable_discussions = Column(Boolean, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    activities = relationship("Activity", back_populates="tour", cascade="all, delete-orphan")


class Activity(Base):
    __tablename__ = "activities"
    __table_args__ = (
        CheckConstraint("end_time >= start_time", name="activities_time_check"),
    )

    id = Column(Integer, primary_key=True)
    tour_id = Column(Integer, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(30), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    location_details = Column(Text)
    # Auto-referencia sin control de ciclos (p.ej. Discusión diaria -> Visita)
    linked_activity_id = Column(Integer, ForeignKey("activities.id", ondelete="SET NULL"), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    tour = relationship("Tour", back_populates="activities")
