"""Admin configuration screens: settings, fees, AI provider and pricing.

Each editor keeps a local buffer of unsaved edits over the platform's
current values. Saving writes through the API and invalidates the cached
query so the next read shows the platform's state. Last write wins.
"""

from typing import Any, Optional

from pydantic import ValidationError

from fokushub.schemas.admin import (
    AdminSetting,
    FeeBreakdown,
    GlobalFeeSettings,
    OpenAISettings,
    PricingRequest,
    SettingCatalog,
    SettingDefinition,
    SettingType,
)
from fokushub.schemas.notices import Notice
from fokushub.services.api_client import ApiClient, ApiConnectionError, ApiError
from fokushub.services.catalog_loader import load_setting_catalog
from fokushub.services.notices import NoticeError, NoticeRenderer, get_notice_renderer
from fokushub.services.query_cache import QueryCache
from fokushub.services.token_store import mask_token
from fokushub.logging_config import get_logger

logger = get_logger(__name__)

SETTINGS_KEY = ("/api/admin/settings",)
FEES_KEY = ("/api/admin/fees/global",)
OPENAI_SETTINGS_KEY = ("/api/admin/openai-settings",)
OPENAI_TEST_PATH = "/api/admin/openai-test"
PRICING_CONFIGS_KEY = ("/api/pricing/configs",)
PRICING_OPTIONS_KEY = ("/api/pricing/options",)
PRICING_CALCULATE_PATH = "/api/pricing/calculate"

TRUE_VALUES = {"true", "1", "yes", "on"}
FALSE_VALUES = {"false", "0", "no", "off"}


class AdminSettingsError(NoticeError):
    """Raised when an admin configuration call fails."""
    pass


class SettingValueError(AdminSettingsError):
    """Raised when an edited value does not fit its setting definition."""

    def __init__(self, key: str, message: str):
        super().__init__(message, status=422)
        self.key = key


def _bound(number: float) -> str:
    return f"{number:g}"


def _check_bounds(definition: SettingDefinition, value: float) -> None:
    label = definition.display_label
    if definition.min is not None and definition.max is not None:
        if not definition.min <= value <= definition.max:
            raise SettingValueError(
                definition.key,
                f"{label} must be between {_bound(definition.min)} and {_bound(definition.max)}",
            )
    elif definition.min is not None and value < definition.min:
        raise SettingValueError(definition.key, f"{label} must be at least {_bound(definition.min)}")
    elif definition.max is not None and value > definition.max:
        raise SettingValueError(definition.key, f"{label} must be at most {_bound(definition.max)}")


def coerce_setting_value(definition: SettingDefinition, raw: Any) -> Any:
    """Convert an edited value to what the platform stores for the setting.

    Integers and decimals are numbers checked against the definition's
    bounds; booleans are stored as the strings "true" and "false".

    Raises:
        SettingValueError: If the value cannot be converted or is out of bounds
    """
    label = definition.display_label

    if definition.type == SettingType.BOOLEAN:
        if isinstance(raw, bool):
            return "true" if raw else "false"
        text = str(raw).strip().lower()
        if text in TRUE_VALUES:
            return "true"
        if text in FALSE_VALUES:
            return "false"
        raise SettingValueError(definition.key, f"{label} must be true or false")

    if definition.type == SettingType.INTEGER:
        if isinstance(raw, bool):
            raise SettingValueError(definition.key, f"{label} must be a whole number")
        try:
            value = int(str(raw).strip())
        except ValueError:
            raise SettingValueError(definition.key, f"{label} must be a whole number")
        _check_bounds(definition, value)
        return value

    if definition.type == SettingType.DECIMAL:
        if isinstance(raw, bool):
            raise SettingValueError(definition.key, f"{label} must be a number")
        try:
            value = float(str(raw).strip())
        except ValueError:
            raise SettingValueError(definition.key, f"{label} must be a number")
        _check_bounds(definition, value)
        return value

    if definition.type == SettingType.CHOICE:
        text = str(raw)
        if text not in (definition.choices or []):
            raise SettingValueError(
                definition.key,
                f"{label} must be one of: {', '.join(definition.choices or [])}",
            )
        return text

    return "" if raw is None else str(raw)


def _failure(renderer: NoticeRenderer, notice_key: str, error: Exception, **context) -> AdminSettingsError:
    message = getattr(error, "message", str(error))
    status = getattr(error, "status", 502)
    return AdminSettingsError(
        message,
        notice=renderer.render(notice_key, **context),
        status=status,
    )


class SettingsEditor:
    """Key/value admin settings with typed editing.

    How a value is edited comes from the setting catalog, or from the type
    the platform declares on the setting; anything else is text.
    """

    def __init__(
        self,
        api: ApiClient,
        cache: Optional[QueryCache] = None,
        catalog: Optional[SettingCatalog] = None,
        renderer: Optional[NoticeRenderer] = None,
    ):
        self.api = api
        self.cache = cache or QueryCache()
        self.catalog = catalog if catalog is not None else load_setting_catalog()
        self.renderer = renderer or get_notice_renderer()
        self.edits: dict[str, Any] = {}

    def settings(self) -> list[AdminSetting]:
        def loader() -> list[AdminSetting]:
            raw = self.api.query(SETTINGS_KEY)
            return [AdminSetting.model_validate(item) for item in raw or []]

        return self.cache.fetch(SETTINGS_KEY, loader)

    def setting(self, key: str) -> AdminSetting:
        for setting in self.settings():
            if setting.key == key:
                return setting
        raise AdminSettingsError(f"Unknown setting: {key}", status=404)

    def categories(self) -> list[str]:
        return sorted({setting.category or "general" for setting in self.settings()})

    def by_category(self, category: str) -> list[AdminSetting]:
        return [
            setting for setting in self.settings()
            if (setting.category or "general") == category
        ]

    def definition(self, key: str) -> SettingDefinition:
        """Editing rules for a key: catalog entry, else the declared type, else text."""
        definition = self.catalog.get(key)
        if definition is not None:
            return definition
        declared = self.setting(key).type
        return SettingDefinition(key=key, type=declared or SettingType.TEXT)

    def edit(self, key: str, raw: Any) -> Any:
        """Buffer a new value for a setting.

        Returns:
            The coerced value that will be saved

        Raises:
            SettingValueError: If the value does not fit the setting
        """
        self.setting(key)
        value = coerce_setting_value(self.definition(key), raw)
        self.edits[key] = value
        return value

    def value(self, key: str) -> Any:
        """Buffered value if edited, else the platform's value."""
        if key in self.edits:
            return self.edits[key]
        return self.setting(key).value

    def discard(self, key: Optional[str] = None) -> None:
        if key is None:
            self.edits.clear()
        else:
            self.edits.pop(key, None)

    def save(self, key: str) -> Notice:
        """Write a setting's current value to the platform.

        Raises:
            AdminSettingsError: If the platform rejects the update
        """
        setting = self.setting(key)
        body = {
            "value": self.value(key),
            "description": setting.description,
            "category": setting.category,
        }
        try:
            self.api.put(f"/api/admin/settings/{key}", body)
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Failed to update setting {key}: {e}")
            raise _failure(self.renderer, "setting_update_failed", e, message=str(e)) from e

        self.edits.pop(key, None)
        self.cache.invalidate(SETTINGS_KEY)
        logger.info(f"Updated admin setting {key}")
        return self.renderer.render("setting_updated", label=self.definition_label(key))

    def definition_label(self, key: str) -> str:
        definition = self.catalog.get(key)
        return definition.display_label if definition else SettingDefinition(key=key).display_label


class FeeSettingsEditor:
    """Global fee configuration and fee breakdowns."""

    def __init__(
        self,
        api: ApiClient,
        cache: Optional[QueryCache] = None,
        renderer: Optional[NoticeRenderer] = None,
    ):
        self.api = api
        self.cache = cache or QueryCache()
        self.renderer = renderer or get_notice_renderer()
        self.edits: dict[str, float] = {}

    def settings(self) -> GlobalFeeSettings:
        """Saved fee settings; platform defaults apply when none are stored."""
        def loader() -> GlobalFeeSettings:
            raw = self.api.query(FEES_KEY)
            return GlobalFeeSettings.model_validate(raw or {})

        return self.cache.fetch(FEES_KEY, loader)

    def current(self) -> GlobalFeeSettings:
        """Saved settings with the buffered edits applied."""
        merged = self.settings().model_dump()
        merged.update(self.edits)
        return GlobalFeeSettings.model_validate(merged)

    def edit(self, **values: float) -> GlobalFeeSettings:
        """Buffer new fee values, e.g. edit(processing_fee_percentage=2.9).

        Raises:
            AdminSettingsError: If a field is unknown or a value is out of range
        """
        unknown = set(values) - set(GlobalFeeSettings.model_fields)
        if unknown:
            raise AdminSettingsError(f"Unknown fee fields: {sorted(unknown)}", status=422)

        candidate = dict(self.edits)
        candidate.update(values)
        merged = self.settings().model_dump()
        merged.update(candidate)
        try:
            fees = GlobalFeeSettings.model_validate(merged)
        except ValidationError as e:
            raise AdminSettingsError(f"Invalid fee settings: {e}", status=422)
        self.edits = candidate
        return fees

    def breakdown(self, gross_amount: float, fees: Optional[GlobalFeeSettings] = None) -> FeeBreakdown:
        """Split a gross payment into fees and the net amount."""
        fees = fees or self.current()
        processing_fee = gross_amount * fees.processing_fee_percentage / 100
        platform_fee = fees.platform_fee_amount + gross_amount * fees.platform_fee_percentage / 100
        total_fees = processing_fee + platform_fee
        return FeeBreakdown(
            gross_amount=gross_amount,
            processing_fee=processing_fee,
            platform_fee=platform_fee,
            total_fees=total_fees,
            net_amount=gross_amount - total_fees,
        )

    def save(self) -> Notice:
        fees = self.current()
        try:
            self.api.post(FEES_KEY[0], fees.model_dump(by_alias=True))
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Failed to update global fees: {e}")
            raise _failure(self.renderer, "fees_update_failed", e) from e

        self.edits = {}
        self.cache.invalidate(FEES_KEY)
        logger.info("Updated global fee settings")
        return self.renderer.render("fees_updated")


class OpenAISettingsEditor:
    """AI provider configuration screen."""

    def __init__(
        self,
        api: ApiClient,
        cache: Optional[QueryCache] = None,
        renderer: Optional[NoticeRenderer] = None,
    ):
        self.api = api
        self.cache = cache or QueryCache()
        self.renderer = renderer or get_notice_renderer()

    def settings(self) -> OpenAISettings:
        def loader() -> OpenAISettings:
            raw = self.api.query(OPENAI_SETTINGS_KEY)
            return OpenAISettings.model_validate(raw or {})

        return self.cache.fetch(OPENAI_SETTINGS_KEY, loader)

    def masked(self) -> dict:
        """Settings with the API key masked, safe to display or log."""
        data = self.settings().model_dump(by_alias=True)
        if data.get("apiKey"):
            data["apiKey"] = mask_token(data["apiKey"], visible=4)
        return data

    def update(self, changes: dict) -> Notice:
        """Save changed fields over the current settings.

        Args:
            changes: Fields to change, by name or alias
                (an apiKey equal to the masked current key is left unchanged)

        Raises:
            AdminSettingsError: If the values are invalid or the platform rejects them
        """
        current = self.settings()
        merged = current.model_dump(by_alias=True)
        masked_key = mask_token(current.api_key, visible=4) if current.api_key else None
        for name, value in changes.items():
            field = OpenAISettings.model_fields.get(name)
            alias = field.alias if field and field.alias else name
            if alias == "apiKey" and masked_key is not None and value == masked_key:
                continue
            merged[alias] = value
        try:
            updated = OpenAISettings.model_validate(merged)
        except ValidationError as e:
            raise AdminSettingsError(f"Invalid AI settings: {e}", status=422)

        try:
            self.api.put(OPENAI_SETTINGS_KEY[0], updated.model_dump(by_alias=True))
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Failed to update AI settings: {e}")
            raise _failure(self.renderer, "setting_update_failed", e, message=str(e)) from e

        self.cache.invalidate(OPENAI_SETTINGS_KEY)
        logger.info(f"Updated AI settings (key: {mask_token(updated.api_key, visible=4)})")
        return self.renderer.render("openai_settings_saved")

    def test_connection(self) -> Notice:
        """Ask the platform to verify the configured AI credentials."""
        try:
            result = self.api.post(OPENAI_TEST_PATH)
        except (ApiError, ApiConnectionError) as e:
            logger.warning(f"AI connection test failed: {e}")
            raise _failure(self.renderer, "openai_connection_failed", e, message=str(e)) from e

        model = result.get("model") if isinstance(result, dict) else None
        return self.renderer.render("openai_connection_ok", model=model or self.settings().model)


class PricingClient:
    """Pricing configuration and quotes."""

    def __init__(
        self,
        api: ApiClient,
        cache: Optional[QueryCache] = None,
        renderer: Optional[NoticeRenderer] = None,
    ):
        self.api = api
        self.cache = cache or QueryCache()
        self.renderer = renderer or get_notice_renderer()

    def configs(self) -> Any:
        return self.cache.fetch(PRICING_CONFIGS_KEY, lambda: self.api.query(PRICING_CONFIGS_KEY))

    def options(self) -> Any:
        return self.cache.fetch(PRICING_OPTIONS_KEY, lambda: self.api.query(PRICING_OPTIONS_KEY))

    def calculate(self, request: PricingRequest) -> Any:
        """Quote a campaign; quotes are cached per request."""
        body = request.model_dump(by_alias=True)
        key = (PRICING_CALCULATE_PATH, tuple(sorted(body.items())))
        return self.cache.fetch(key, lambda: self.api.post(PRICING_CALCULATE_PATH, body))

    def save_default(self, key: str, value: Any) -> Notice:
        """Store a pricing default as an admin setting."""
        try:
            self.api.post(SETTINGS_KEY[0], {"key": key, "value": str(value), "category": "pricing"})
        except (ApiError, ApiConnectionError) as e:
            logger.error(f"Failed to update pricing setting {key}: {e}")
            raise _failure(self.renderer, "pricing_update_failed", e) from e

        self.cache.invalidate(PRICING_CONFIGS_KEY)
        self.cache.invalidate(SETTINGS_KEY)
        return self.renderer.render("pricing_updated")
