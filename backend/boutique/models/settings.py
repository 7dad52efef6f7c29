from __future__ import annotations

from ..extensions import db
from ..money import as_rate
from ..time_utils import to_utc_z


class BusinessSettings(db.Model):
    """
    Single-row business configuration.

    currency_rate means 1 unit of default_currency = currency_rate units of
    the other supported currency.
    """
    __tablename__ = "business_settings"

    id = db.Column(db.Integer, primary_key=True)
    business_name = db.Column(db.String(255), nullable=False, default="My Boutique")
    short_name = db.Column(db.String(64), nullable=False, default="Boutique")
    default_currency = db.Column(db.String(8), nullable=False, default="THB")
    tax_rate = db.Column(db.Numeric(6, 3), nullable=False, default=7)
    currency_rate = db.Column(db.Numeric(18, 6), nullable=False, default=0)
    current_branch = db.Column(db.String(128), nullable=True)
    invoice_footer_message = db.Column(db.Text, nullable=True)
    gs1_company_prefix = db.Column(db.String(11), nullable=False, default="8901234")

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "business_name": self.business_name,
            "short_name": self.short_name,
            "default_currency": self.default_currency,
            "tax_rate": as_rate(self.tax_rate),
            "currency_rate": as_rate(self.currency_rate),
            "current_branch": self.current_branch,
            "invoice_footer_message": self.invoice_footer_message,
            "gs1_company_prefix": self.gs1_company_prefix,
            "updated_at": to_utc_z(self.updated_at),
        }
