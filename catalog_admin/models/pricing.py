"""Price blocks shared by common and size-based pricing."""
import math
from dataclasses import dataclass, fields

RESELLER_TIERS = tuple(f"reseller{i}" for i in range(1, 7))
PRICE_FIELDS = ("mrp", "customer", "reseller") + RESELLER_TIERS + ("special",)


def parse_number(value):
    """Parse a form value into a float.

    Empty input counts as 0, matching a cleared number input. Anything that
    is not a finite number comes back as None so validation can reject it.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    text = str(value).strip()
    if not text:
        return 0.0
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def is_valid_amount(value):
    return value is not None and not isinstance(value, bool) and math.isfinite(value) and value >= 0


@dataclass
class PricingBlock:
    mrp: float = 0.0
    customer: float = 0.0
    reseller: float = 0.0
    reseller1: float = 0.0
    reseller2: float = 0.0
    reseller3: float = 0.0
    reseller4: float = 0.0
    reseller5: float = 0.0
    reseller6: float = 0.0
    special: float = 0.0

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        values = {}
        for f in fields(cls):
            raw = data.get(f.name)
            # Backend omits unset tiers; treat missing/null as 0 like the form does
            values[f.name] = parse_number(raw) if raw is not None else 0.0
        return cls(**values)

    def to_dict(self):
        return {name: getattr(self, name) for name in PRICE_FIELDS}

    def copy(self):
        return PricingBlock(**self.to_dict())

    def unify(self):
        """Overwrite every reseller tier with the main reseller price."""
        for tier in RESELLER_TIERS:
            setattr(self, tier, self.reseller)

    def is_unified(self):
        return all(getattr(self, tier) == self.reseller for tier in RESELLER_TIERS)

    def seed(self, use_individual):
        """Copy used to seed a new size entry from this template block."""
        block = self.copy()
        if not use_individual:
            block.unify()
        return block

    def invalid_fields(self):
        return [name for name in PRICE_FIELDS if not is_valid_amount(getattr(self, name))]


@dataclass
class SizePricing:
    size: str
    pricing: PricingBlock

    @classmethod
    def from_dict(cls, data):
        return cls(size=str(data.get("size", "")).strip(),
                   pricing=PricingBlock.from_dict(data.get("pricing")))

    def to_dict(self):
        return {"size": self.size, "pricing": self.pricing.to_dict()}
