"""Request bodies accepted by the service's own HTTP endpoints."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class AnswerRequest(BaseModel):
    response: Any = None


class ToggleOptionRequest(BaseModel):
    option: Any
    checked: bool


class VerificationDetailsRequest(BaseModel):
    """Free-text verification fields; omitted fields are left unchanged."""
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    address: Optional[str] = None
    additional_info: Optional[str] = Field(default=None, alias="additionalInfo")

    model_config = {"populate_by_name": True}


class SettingEditRequest(BaseModel):
    value: Any


class FeeEditRequest(BaseModel):
    processing_fee_percentage: Optional[float] = Field(default=None, alias="processingFeePercentage")
    platform_fee_amount: Optional[float] = Field(default=None, alias="platformFeeAmount")
    platform_fee_percentage: Optional[float] = Field(default=None, alias="platformFeePercentage")

    model_config = {"populate_by_name": True}

    def changes(self) -> dict[str, float]:
        return self.model_dump(exclude_none=True)


class ScheduleRequest(BaseModel):
    enabled: bool
    frequency: str = "twice-daily"


class PricingDefaultRequest(BaseModel):
    key: str = Field(..., min_length=1)
    value: Any
