"""SQLAlchemy 모델"""
from creator_earnings.models.creator_benefit import CreatorBenefit, CreatorBenefitConfig
from creator_earnings.models.lesson import Lesson, LessonPayment
from creator_earnings.models.sequencer import Song, SequencerFile, Payment, SequencerEnrollment
from creator_earnings.models.discount_benefit import DiscountCode, CreatorDiscountBenefit

__all__ = [
    "CreatorBenefit",
    "CreatorBenefitConfig",
    "Lesson",
    "LessonPayment",
    "Song",
    "SequencerFile",
    "Payment",
    "SequencerEnrollment",
    "DiscountCode",
    "CreatorDiscountBenefit",
]
