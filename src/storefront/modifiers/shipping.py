"""Flat-rate shipping keyed by destination country."""

from protean.exceptions import ValidationError

from storefront.modifiers.chain import ModifierKind, OrderModifierRule, PricingContext


class FlatShippingModifier(OrderModifierRule):
    name = "shipping"

    def __init__(self, default_charge: float = 0.0, charges_for_countries: dict | None = None, name: str = "shipping"):
        if default_charge < 0:
            raise ValidationError({"default_charge": ["Shipping charge cannot be negative"]})
        self.name = name
        self.default_charge = default_charge
        self._charges: dict[str, float] = {}
        for country, charge in (charges_for_countries or {}).items():
            self.set_charge(country, charge)

    def set_charge(self, country: str, charge: float) -> None:
        if charge < 0:
            raise ValidationError({"charge": ["Shipping charge cannot be negative"]})
        self._charges[country.upper()] = charge

    def charge_for(self, country: str | None) -> float:
        if country and country.upper() in self._charges:
            return self._charges[country.upper()]
        return self.default_charge

    def compute_amount(self, context: PricingContext) -> float:
        return self.charge_for(context.destination)

    def kind_for(self, context: PricingContext) -> ModifierKind:  # noqa: ARG002
        return ModifierKind.CHARGEABLE

    def label_for(self, context: PricingContext) -> str:
        if context.destination:
            return f"Shipping to {context.destination.upper()}"
        return "Shipping"

    def details_for(self, context: PricingContext) -> dict:
        return {"country": context.destination.upper() if context.destination else None}
