"""시퀀서(멀티트랙) 판매 모델"""
import uuid
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from creator_earnings.database import Base


class Song(Base):
    """곡 (user_id = 곡 소유 크리에이터)"""

    __tablename__ = "songs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    title = Column(String(300))
    artist = Column(String(200))

    sequencer_files = relationship("SequencerFile", back_populates="song")

    def __repr__(self):
        return f"<Song(title='{self.title}', owner={self.user_id})>"


class SequencerFile(Base):
    """곡별 시퀀서 파일"""

    __tablename__ = "sequencer_files"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    song_id = Column(String(36), ForeignKey("songs.id"), nullable=False)
    price = Column(Integer, default=0)

    song = relationship("Song", back_populates="sequencer_files")
    enrollments = relationship("SequencerEnrollment", back_populates="sequencer_file")


class Payment(Base):
    """결제 내역 (시퀀서 구매)"""

    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    amount = Column(Integer, default=0)
    status = Column(String(20), nullable=False)  # paid / pending / failed / expired
    paid_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Payment(amount={self.amount}, status={self.status})>"


class SequencerEnrollment(Base):
    """시퀀서 구매(등록) 1건, 순수익/수수료는 저장하지 않고 조회 시 계산"""

    __tablename__ = "sequencer_enrollments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    sequencer_file_id = Column(String(36), ForeignKey("sequencer_files.id"), nullable=False)
    user_id = Column(String(36))  # 구매자
    payment_id = Column(String(36), ForeignKey("payments.id"))
    enrolled_at = Column(DateTime, default=datetime.utcnow)
    is_production = Column(Boolean, default=True, nullable=False)

    sequencer_file = relationship("SequencerFile", back_populates="enrollments")
    payment = relationship("Payment")

    def __repr__(self):
        return f"<SequencerEnrollment(file={self.sequencer_file_id}, buyer={self.user_id})>"
