"""편곡 혜택(로열티) 원장 모델"""
import uuid
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index
from datetime import datetime
from creator_earnings.database import Base


class CreatorBenefit(Base):
    """편곡 곡 활동으로 발생한 로열티 1건 (song_publish / library_add / discount_code)

    백엔드 트리거가 생성하며 생성 후 변경되지 않음. 플랫폼 수수료 없음 (amount = 총액 = 순수익)
    """

    __tablename__ = "creator_benefits"
    __table_args__ = (
        Index("ix_benefit_creator_created", "creator_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    creator_id = Column(String(36), nullable=False, index=True)
    song_id = Column(String(36))
    amount = Column(Integer, default=0)
    benefit_type = Column(String(30), nullable=False)
    is_production = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<CreatorBenefit(creator={self.creator_id}, type={self.benefit_type}, amount={self.amount})>"


class CreatorBenefitConfig(Base):
    """크리에이터별 수익 배분율 설정 (관리자 설정)

    period_start_date / period_end_date 가 비어 있으면 기간 제한 없음
    """

    __tablename__ = "creator_benefit_configs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    creator_id = Column(String(36), nullable=False, index=True)
    benefit_type = Column(String(30), nullable=False)  # lesson 등
    benefit_percentage = Column(Integer, nullable=False)
    period_start_date = Column(DateTime)
    period_end_date = Column(DateTime)
    is_production = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<CreatorBenefitConfig(creator={self.creator_id}, type={self.benefit_type}, pct={self.benefit_percentage})>"

    def covers(self, when: datetime) -> bool:
        """해당 시점이 설정 적용 기간에 포함되는지"""
        if when is None:
            return self.period_start_date is None and self.period_end_date is None
        if self.period_start_date and when < self.period_start_date:
            return False
        if self.period_end_date and when > self.period_end_date:
            return False
        return True
