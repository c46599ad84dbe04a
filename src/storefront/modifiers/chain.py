"""Modifier chain — turns an order subtotal into the payable total.

Each rule produces an amount and a kind. The kind decides what the amount does
to the running total: chargeable amounts are added, deductible amounts are
subtracted and neutral amounts are shown without changing anything (a tax
already included in the prices, for instance). Rules apply strictly in
registration order.

Before an order is committed the amounts are derived live from a
``PricingContext``. Once committed the frozen amounts stored on the order are
folded instead, and the chain is never consulted again for that order.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

import structlog

logger = structlog.get_logger(__name__)


class ModifierKind(Enum):
    NEUTRAL = "Neutral"
    CHARGEABLE = "Chargeable"
    DEDUCTIBLE = "Deductible"

    def apply(self, running_total: float, amount: float) -> float:
        if self is ModifierKind.CHARGEABLE:
            return running_total + amount
        if self is ModifierKind.DEDUCTIBLE:
            return running_total - amount
        return running_total


@dataclass(frozen=True)
class PricingContext:
    """What a rule may look at when computing its amount."""

    subtotal: float
    customer_country: str | None = None
    shipping_country: str | None = None

    @property
    def destination(self) -> str | None:
        return self.shipping_country or self.customer_country


@dataclass(frozen=True)
class ModifierResult:
    """One evaluated rule, ready to be frozen onto an order."""

    name: str
    kind: ModifierKind
    amount: float
    label: str
    details: dict = field(default_factory=dict)

    def apply_to_running_total(self, running_total: float) -> float:
        return self.kind.apply(running_total, self.amount)


class OrderModifierRule(ABC):
    """Base class for tax, shipping and discount rules."""

    name: str = "modifier"

    @abstractmethod
    def compute_amount(self, context: PricingContext) -> float:
        """Amount this rule contributes for ``context``; always non-negative."""
        ...

    @abstractmethod
    def kind_for(self, context: PricingContext) -> ModifierKind: ...

    def label_for(self, context: PricingContext) -> str:  # noqa: ARG002
        return self.name

    def details_for(self, context: PricingContext) -> dict:  # noqa: ARG002
        return {}

    def evaluate(self, context: PricingContext) -> ModifierResult:
        return ModifierResult(
            name=self.name,
            kind=self.kind_for(context),
            amount=round(self.compute_amount(context), 2),
            label=self.label_for(context),
            details=self.details_for(context),
        )

    def apply_to_running_total(self, running_total: float, context: PricingContext) -> float:
        return self.evaluate(context).apply_to_running_total(running_total)


def fold(subtotal, modifiers) -> float:
    """Fold frozen modifier amounts over ``subtotal`` in the order given.

    ``modifiers`` is any iterable of objects with ``kind`` (a ``ModifierKind``
    or its value) and ``amount``.
    """
    running_total = subtotal
    for modifier in modifiers:
        running_total = ModifierKind(modifier.kind).apply(running_total, modifier.amount)
    return round(running_total, 2)


class ModifierChain:
    def __init__(self, rules=None) -> None:
        self._rules: list[OrderModifierRule] = []
        for rule in rules or []:
            self.add(rule)

    def __iter__(self):
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def names(self) -> list[str]:
        return [rule.name for rule in self._rules]

    def add(self, rule: OrderModifierRule) -> None:
        """Register ``rule`` at the end of the chain. A name already registered is ignored."""
        if rule.name in self.names:
            logger.debug("modifier_already_registered", modifier=rule.name)
            return
        self._rules.append(rule)

    def remove(self, name: str) -> None:
        self._rules = [rule for rule in self._rules if rule.name != name]

    def evaluate(self, context: PricingContext) -> list[ModifierResult]:
        return [rule.evaluate(context) for rule in self._rules]

    def total(self, context: PricingContext) -> float:
        return fold(context.subtotal, self.evaluate(context))


_current_chain: ModifierChain | None = None


def get_modifier_chain() -> ModifierChain:
    """Return the configured chain. Defaults to an empty chain."""
    global _current_chain
    if _current_chain is None:
        _current_chain = ModifierChain()
    return _current_chain


def set_modifier_chain(chain: ModifierChain) -> None:
    global _current_chain
    _current_chain = chain


def reset_modifier_chain() -> None:
    global _current_chain
    _current_chain = None
