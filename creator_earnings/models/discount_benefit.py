"""할인 코드 캐시백 모델"""
import uuid
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from creator_earnings.database import Base


class DiscountCode(Base):
    """크리에이터 할인 코드"""

    __tablename__ = "discount_codes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code = Column(String(50), unique=True, nullable=False)
    creator_id = Column(String(36), index=True)

    def __repr__(self):
        return f"<DiscountCode(code='{self.code}')>"


class CreatorDiscountBenefit(Base):
    """할인 코드 사용 시 크리에이터에게 지급되는 캐시백 1건"""

    __tablename__ = "creator_discount_benefits"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    creator_id = Column(String(36), nullable=False, index=True)
    discount_code_id = Column(String(36), ForeignKey("discount_codes.id"), nullable=False)
    original_amount = Column(Integer, default=0)
    discount_amount = Column(Integer, default=0)
    creator_benefit_amount = Column(Integer, default=0)
    is_production = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    discount_code = relationship("DiscountCode")

    def __repr__(self):
        return f"<CreatorDiscountBenefit(creator={self.creator_id}, amount={self.creator_benefit_amount})>"
