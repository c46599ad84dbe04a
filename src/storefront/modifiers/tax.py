"""Country-based tax modifier.

Rates are registered per customer country. An exclusive tax is added on top of
the subtotal; an inclusive tax is already part of the prices, so its amount is
only reported (Neutral) and the total does not move:

    exclusive:  amount = base * rate
    inclusive:  amount = base * (1 - 1 / (1 + rate))

The base is always the pre-modifier subtotal. Countries without a rate get a
Neutral modifier with a zero amount.
"""

from dataclasses import dataclass
from enum import Enum

from protean.exceptions import ValidationError

from storefront.modifiers.chain import ModifierKind, OrderModifierRule, PricingContext


class TaxType(Enum):
    EXCLUSIVE = "exclusive"
    INCLUSIVE = "inclusive"


@dataclass(frozen=True)
class TaxRate:
    rate: float
    name: str
    tax_type: TaxType


class TaxModifier(OrderModifierRule):
    name = "tax"

    def __init__(self, name: str = "tax") -> None:
        self.name = name
        self._rates: dict[str, TaxRate] = {}

    def set_by_country(self, country: str, rate: float, name: str, tax_type: str = "exclusive") -> None:
        if rate < 0:
            raise ValidationError({"rate": ["Tax rate cannot be negative"]})
        try:
            tax_type = TaxType(tax_type)
        except ValueError:
            raise ValidationError({"tax_type": ["Tax type must be 'exclusive' or 'inclusive'"]}) from None
        self._rates[country.upper()] = TaxRate(rate=rate, name=name, tax_type=tax_type)

    def rate_for(self, country: str | None) -> TaxRate | None:
        if not country:
            return None
        return self._rates.get(country.upper())

    def compute_amount(self, context: PricingContext) -> float:
        tax_rate = self.rate_for(context.customer_country)
        if tax_rate is None:
            return 0.0
        if tax_rate.tax_type is TaxType.INCLUSIVE:
            return context.subtotal * (1 - 1 / (1 + tax_rate.rate))
        return context.subtotal * tax_rate.rate

    def kind_for(self, context: PricingContext) -> ModifierKind:
        tax_rate = self.rate_for(context.customer_country)
        if tax_rate is None or tax_rate.tax_type is TaxType.INCLUSIVE:
            return ModifierKind.NEUTRAL
        return ModifierKind.CHARGEABLE

    def label_for(self, context: PricingContext) -> str:
        """Human-readable tax name, e.g. "GST"."""
        tax_rate = self.rate_for(context.customer_country)
        return tax_rate.name if tax_rate else self.name

    def details_for(self, context: PricingContext) -> dict:
        tax_rate = self.rate_for(context.customer_country)
        if tax_rate is None:
            return {"country": context.customer_country}
        return {
            "country": context.customer_country.upper(),
            "rate": tax_rate.rate,
            "tax_type": tax_rate.tax_type.value,
        }
