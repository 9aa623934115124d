"""Pydantic schemas for admin settings, fees, pricing and AI configuration.

Setting definitions are loaded from the YAML setting catalog and describe
how a setting's value is edited and validated. All durable rules about
settings live on the platform; these only shape local editing.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from fokushub.schemas.questionnaire import PlatformRecord


class SettingType(str, Enum):
    """Value kinds an admin setting can hold."""
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    TEXT = "text"
    CHOICE = "choice"


class AdminSetting(PlatformRecord):
    """A key/value admin setting as returned by /api/admin/settings.

    Attributes:
        key: Unique setting key
        value: Current value (platform stores most values as strings)
        description: Human description of the setting
        category: Group the setting is listed under
        type: Declared value type, when the platform provides one
    """
    key: str
    value: Any = None
    description: Optional[str] = None
    category: Optional[str] = None
    type: Optional[SettingType] = None

    @field_validator("type", mode="before")
    @classmethod
    def ignore_unknown_type(cls, v):
        """Treat unknown declared types as undeclared."""
        if v is None or isinstance(v, SettingType):
            return v
        try:
            return SettingType(str(v).lower())
        except ValueError:
            return None


class SettingDefinition(BaseModel):
    """Editing rules for one admin setting key.

    Attributes:
        key: Setting key this definition applies to
        type: Value type used to coerce and validate edits
        label: Display label (defaults to the title-cased key)
        min: Lower bound for integer/decimal settings
        max: Upper bound for integer/decimal settings
        choices: Allowed values for choice settings
    """
    key: str = Field(..., min_length=1)
    type: SettingType = SettingType.TEXT
    label: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    choices: Optional[list[str]] = None

    @model_validator(mode="after")
    def validate_definition(self):
        """Check bounds and choices are consistent with the type."""
        if self.min is not None and self.max is not None and self.max < self.min:
            raise ValueError(f"Setting '{self.key}': max must be >= min")
        if self.type == SettingType.CHOICE and not self.choices:
            raise ValueError(f"Choice setting '{self.key}' must list choices")
        return self

    @property
    def display_label(self) -> str:
        if self.label:
            return self.label
        return " ".join(word.capitalize() for word in self.key.split("_"))


class SettingCatalog(BaseModel):
    """Root schema of the admin setting catalog YAML file."""
    version: str = Field(..., pattern=r"^\d+\.\d+\.\d+$")
    settings: list[SettingDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_keys(self):
        keys = [definition.key for definition in self.settings]
        duplicates = sorted({key for key in keys if keys.count(key) > 1})
        if duplicates:
            raise ValueError(f"Duplicate setting keys found: {duplicates}")
        return self

    def get(self, key: str) -> Optional[SettingDefinition]:
        for definition in self.settings:
            if definition.key == key:
                return definition
        return None


class GlobalFeeSettings(PlatformRecord):
    """Platform-wide fee configuration."""
    processing_fee_percentage: float = Field(default=3.50, ge=0, le=100, alias="processingFeePercentage")
    platform_fee_amount: float = Field(default=0.0, ge=0, alias="platformFeeAmount")
    platform_fee_percentage: float = Field(default=0.0, ge=0, le=100, alias="platformFeePercentage")


class FeeBreakdown(BaseModel):
    """How a gross payment splits into fees and the net amount."""
    gross_amount: float
    processing_fee: float
    platform_fee: float
    total_fees: float
    net_amount: float


class AudienceGeneration(PlatformRecord):
    enabled: bool = True
    system_prompt: str = Field(default="", alias="systemPrompt")
    temperature: float = Field(default=0.7, ge=0, le=2)


class ParticipantMatching(PlatformRecord):
    enabled: bool = True
    algorithm: str = "balanced"
    threshold: float = Field(default=0.7, ge=0, le=1)
    max_matches: int = Field(default=50, ge=1, alias="maxMatches")

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        allowed = {"similarity", "diversity", "balanced"}
        if v not in allowed:
            raise ValueError(f"Matching algorithm must be one of {allowed}")
        return v


class InsightGeneration(PlatformRecord):
    enabled: bool = True
    analysis_depth: str = Field(default="advanced", alias="analysisDepth")
    include_recommendations: bool = Field(default=True, alias="includeRecommendations")
    sentiment_analysis: bool = Field(default=True, alias="sentimentAnalysis")


class ContentModeration(PlatformRecord):
    enabled: bool = True
    filter_level: str = Field(default="medium", alias="filterLevel")
    categories: list[str] = Field(default_factory=list)


class OpenAISettings(PlatformRecord):
    """AI provider settings edited on the OpenAI settings screen."""
    api_key: str = Field(default="", alias="apiKey")
    organization: str = ""
    model: str = "gpt-4o"
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=2000, ge=1, alias="maxTokens")
    audience_generation: AudienceGeneration = Field(default_factory=AudienceGeneration, alias="audienceGeneration")
    participant_matching: ParticipantMatching = Field(default_factory=ParticipantMatching, alias="participantMatching")
    insight_generation: InsightGeneration = Field(default_factory=InsightGeneration, alias="insightGeneration")
    content_moderation: ContentModeration = Field(default_factory=ContentModeration, alias="contentModeration")


class PricingRequest(PlatformRecord):
    """Body of POST /api/pricing/calculate."""
    campaign_type: str = Field(alias="campaignType")
    content_type: str = Field(alias="contentType")
    participant_count: int = Field(ge=1, alias="participantCount")
