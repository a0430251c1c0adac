"""Coupon DTOs for data validation."""
from pydantic import BaseModel, Field, field_validator


class CreateCouponDTO(BaseModel):
    """DTO for creating a coupon."""

    cupon_name: str = Field(..., max_length=100, description="Coupon name")
    discount_percent: int = Field(..., ge=1, le=100, description="Discount percentage (1-100)")

    @field_validator('cupon_name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Strip and require a non-empty name."""
        v = v.strip()
        if not v:
            raise ValueError("Имя купона обязательно")
        return v
