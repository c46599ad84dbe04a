"""Fixed-amount discount."""

from protean.exceptions import ValidationError

from storefront.modifiers.chain import ModifierKind, OrderModifierRule, PricingContext


class FlatDiscountModifier(OrderModifierRule):
    """Takes a fixed amount off, never more than the subtotal it applies to."""

    name = "discount"

    def __init__(self, amount: float, label: str = "Discount", name: str = "discount") -> None:
        if amount < 0:
            raise ValidationError({"amount": ["Discount cannot be negative"]})
        self.name = name
        self.amount = amount
        self.label = label

    def compute_amount(self, context: PricingContext) -> float:
        return min(self.amount, max(context.subtotal, 0.0))

    def kind_for(self, context: PricingContext) -> ModifierKind:  # noqa: ARG002
        return ModifierKind.DEDUCTIBLE

    def label_for(self, context: PricingContext) -> str:  # noqa: ARG002
        return self.label
