"""
Submission SQLAlchemy models.

These tables belong to the submission/review flow; the insights
pipeline only reads them.

Tables:
    clients: Agency clients who review submissions
    submissions: Content sent to a client for approval
    media_files: Images and videos attached to a submission
    reviews: The client's approve/reject decision, one per submission
"""
import uuid

from sqlalchemy import (
    Column, Integer, Text, DateTime, Uuid,
    ForeignKey, Index,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from thumbsup.database import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    submissions = relationship("Submission", back_populates="client")


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(
        Uuid,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    message = Column(Text, nullable=True)
    captions = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    client = relationship("Client", back_populates="submissions")
    media_files = relationship(
        "MediaFile",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="MediaFile.display_order",
    )
    review = relationship(
        "Review",
        back_populates="submission",
        uselist=False,
        cascade="all, delete-orphan",
    )


class MediaFile(Base):
    __tablename__ = "media_files"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    submission_id = Column(
        Uuid,
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name = Column(Text, nullable=False)
    file_path = Column(Text, nullable=False)
    file_type = Column(Text, nullable=False)  # image / video
    file_size = Column(Integer, nullable=True)
    display_order = Column(Integer, nullable=False, default=0)

    submission = relationship("Submission", back_populates="media_files")


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    submission_id = Column(
        Uuid,
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    status = Column(Text, nullable=False)  # approved / rejected
    comment = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), server_default=func.now())

    submission = relationship("Submission", back_populates="review")

    __table_args__ = (
        Index("ix_reviews_status", "status"),
    )
