"""레슨(Music Lab) 및 레슨 결제 모델"""
import uuid
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from creator_earnings.database import Base


class Lesson(Base):
    """유료 영상 레슨"""

    __tablename__ = "lessons"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    creator_id = Column(String(36), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    price = Column(Integer, default=0)
    is_production = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    payments = relationship("LessonPayment", back_populates="lesson")

    def __repr__(self):
        return f"<Lesson(title='{self.title}', creator={self.creator_id})>"


class LessonPayment(Base):
    """레슨 구매 결제 1건"""

    __tablename__ = "lesson_payments"
    __table_args__ = (
        Index("ix_lesson_payment_lesson_status", "lesson_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    lesson_id = Column(String(36), ForeignKey("lessons.id"), nullable=False)
    buyer_id = Column(String(36))
    buyer_name = Column(String(200))
    amount = Column(Integer, default=0)
    status = Column(String(20), nullable=False)  # paid / pending / failed ...
    paid_at = Column(DateTime)
    is_production = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    lesson = relationship("Lesson", back_populates="payments")

    def __repr__(self):
        return f"<LessonPayment(lesson={self.lesson_id}, amount={self.amount}, status={self.status})>"
