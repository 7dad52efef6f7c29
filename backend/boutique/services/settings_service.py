"""
Business settings and currency helpers.

Pricing code never reads settings directly; it receives a PricingConfig built
here so carts and reports can be computed without a database.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from ..extensions import db
from ..models import BusinessSettings
from ..money import HUNDRED, ZERO, quantize_money, to_decimal
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_settings,
    validate_payload,
)

logger = logging.getLogger(__name__)

SUPPORTED_CURRENCIES = ("THB", "MMK")

CURRENCY_INFO = {
    "THB": {"code": "THB", "symbol": "฿", "name": "Thai Baht", "decimals": 2},
    "MMK": {"code": "MMK", "symbol": "Ks", "name": "Myanmar Kyat", "decimals": 0},
}

# Older expense records used the display label instead of the ISO code
CURRENCY_ALIASES = {"BAHT": "THB", "KYAT": "MMK", "KS": "MMK"}

SETTINGS_POLICY = ModelValidationPolicy(
    writable_fields={
        "business_name",
        "short_name",
        "default_currency",
        "tax_rate",
        "currency_rate",
        "current_branch",
        "invoice_footer_message",
        "gs1_company_prefix",
    },
)


@dataclass(frozen=True)
class PricingConfig:
    tax_rate: Decimal = Decimal("7")
    default_currency: str = "THB"
    conversion_rate: Decimal = ZERO

    @classmethod
    def from_settings(cls, settings: BusinessSettings) -> "PricingConfig":
        return cls(
            tax_rate=to_decimal(settings.tax_rate),
            default_currency=settings.default_currency,
            conversion_rate=to_decimal(settings.currency_rate),
        )

    @property
    def other_currency(self) -> str:
        return "MMK" if self.default_currency == "THB" else "THB"


def normalize_currency(value: str | None) -> str:
    if value is None or not str(value).strip():
        raise ValidationError("currency is required")
    code = str(value).strip().upper()
    code = CURRENCY_ALIASES.get(code, code)
    if code not in SUPPORTED_CURRENCIES:
        raise ValidationError(f"Unsupported currency: {value}")
    return code


def convert_price(amount, from_currency: str, to_currency: str, config: PricingConfig) -> Decimal:
    """
    Convert between the two supported currencies.

    The configured rate reads "1 default = rate other", so converting out of
    the default currency multiplies and converting into it divides.
    """
    amount = to_decimal(amount)
    if from_currency == to_currency:
        return amount
    rate = config.conversion_rate
    if rate <= 0:
        raise ValidationError("Currency conversion rate is not configured")
    if from_currency == config.default_currency:
        return amount * rate
    if to_currency == config.default_currency:
        return amount / rate
    raise ValidationError(f"Cannot convert {from_currency} to {to_currency}")


def format_price(amount, currency: str) -> str:
    info = CURRENCY_INFO.get(currency, {"symbol": currency, "decimals": 2})
    value = quantize_money(amount)
    if info["decimals"] == 0:
        text = f"{value:,.0f}"
    else:
        text = f"{value:,.2f}"
    if currency == "MMK":
        return f"{text} {info['symbol']}"
    return f"{info['symbol']}{text}"


def get_business_settings() -> BusinessSettings:
    """Return the settings row, creating it with defaults on first use."""
    settings = db.session.query(BusinessSettings).order_by(BusinessSettings.id).first()
    if settings is None:
        settings = BusinessSettings()
        db.session.add(settings)
        db.session.commit()
        logger.info("Created default business settings")
    return settings


def get_pricing_config() -> PricingConfig:
    return PricingConfig.from_settings(get_business_settings())


def update_business_settings(payload: dict) -> BusinessSettings:
    patch = validate_payload(
        model=BusinessSettings,
        payload=payload,
        policy=SETTINGS_POLICY,
        partial=True,
    )
    if "default_currency" in patch:
        patch["default_currency"] = normalize_currency(patch["default_currency"])
    enforce_rules_settings(patch)

    settings = get_business_settings()
    for key, value in patch.items():
        setattr(settings, key, value)
    db.session.commit()
    return settings


def settings_payload(settings: BusinessSettings) -> dict:
    data = settings.to_dict()
    data["currencies"] = [CURRENCY_INFO[code] for code in SUPPORTED_CURRENCIES]
    return data


def percent_of(amount, percent) -> Decimal:
    return to_decimal(amount) * to_decimal(percent) / HUNDRED
