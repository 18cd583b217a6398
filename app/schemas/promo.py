from pydantic import BaseModel
from typing import List, Optional

class PromoValidateIn(BaseModel):
    code: str = ""
    userEmail: str = ""
    orderValue: int = 0  # minor units
    experienceId: Optional[str] = None

class PromoPreviewOut(BaseModel):
    isValid: bool = True
    code: str
    description: str
    discountType: str
    discountValue: int
    discountDisplay: str
    originalAmount: int
    discountAmount: int
    finalAmount: int
    currency: str

class AvailablePromoOut(BaseModel):
    code: str
    description: str
    discountDisplay: str
    minimumOrderValue: int
    validUntil: str
    remainingUsage: Optional[int] = None  # None = unlimited
    applicableCategories: List[str] = []
