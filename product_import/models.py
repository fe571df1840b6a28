#!/usr/bin/env python3
"""
Canonical product model shared by every pipeline stage.

RawLineItem is the adapter -> grouper handoff (one source row after column
mapping). Product and Variant are the vendor-independent output.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Optional

CENT = Decimal('0.01')
ZERO = Decimal('0')


def quantize_money(value: Optional[Decimal]) -> Decimal:
    """Round to cents, half-up. None becomes 0.00."""
    if value is None:
        return ZERO.quantize(CENT)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class AgeGroup(str, Enum):
    BABY = 'Baby'
    KIDS = 'Kids'
    TEEN = 'Teen'
    ADULT = 'Adult'

    @property
    def attribute_name(self) -> str:
        """Size attribute name used by the catalog system."""
        return AGE_GROUP_ATTRIBUTES[self]

    @classmethod
    def parse(cls, value: Any, default: 'AgeGroup' = None) -> 'AgeGroup':
        if isinstance(value, AgeGroup):
            return value
        text = str(value or '').strip().lower()
        for member in cls:
            if text in (member.value.lower(), member.attribute_name.lower()):
                return member
        return default if default is not None else cls.KIDS


AGE_GROUP_ATTRIBUTES = {
    AgeGroup.BABY: "MAAT Baby's",
    AgeGroup.KIDS: 'MAAT Kinderen',
    AgeGroup.TEEN: 'MAAT Tieners',
    AgeGroup.ADULT: 'MAAT Volwassenen',
}


class PriceSource(str, Enum):
    INLINE = 'inline'
    PRICE_LIST = 'price_list'
    INVOICE = 'invoice'
    TARIF = 'tarif'
    MARKUP = 'markup'
    RECONCILED = 'reconciled'
    NONE = 'none'

    @classmethod
    def parse(cls, value: Any) -> 'PriceSource':
        if isinstance(value, PriceSource):
            return value
        return cls(str(value).strip().lower())


@dataclass
class RawLineItem:
    reference: str
    size: str
    product_name: str = ''
    color: str = ''
    ean: str = ''
    sku: str = ''
    quantity: Optional[int] = None
    unit_price: Optional[Decimal] = None
    rrp: Optional[Decimal] = None
    composition: str = ''
    description: str = ''
    csv_category: str = ''
    brand: str = ''
    display_name: str = ''
    suggested_brand: Optional[str] = None
    row_number: int = 0
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CategoryRef:
    id: int
    name: str
    display_name: str = ''

    @property
    def label(self) -> str:
        return self.display_name or self.name

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'display_name': self.display_name}


@dataclass
class Variant:
    size: str
    quantity: int = 0
    ean: str = ''
    sku: Optional[str] = None
    price: Decimal = ZERO
    rrp: Decimal = ZERO
    raw_size: str = ''
    price_source: PriceSource = PriceSource.NONE
    rrp_source: PriceSource = PriceSource.NONE
    price_missing: bool = False
    # Values read from the source row, kept for the price resolver
    inline_price: Optional[Decimal] = field(default=None, repr=False)
    inline_rrp: Optional[Decimal] = field(default=None, repr=False)
    row_number: int = field(default=0, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'size': self.size,
            'raw_size': self.raw_size,
            'quantity': self.quantity,
            'ean': self.ean,
            'sku': self.sku,
            'price': str(quantize_money(self.price)),
            'rrp': str(quantize_money(self.rrp)),
            'price_source': self.price_source.value,
            'rrp_source': self.rrp_source.value,
            'price_missing': self.price_missing,
        }


@dataclass
class Product:
    reference: str
    name: str = ''
    original_name: str = ''
    color: str = ''
    material: str = ''
    ecommerce_description: str = ''
    csv_category: str = ''
    age_group: AgeGroup = AgeGroup.KIDS
    variants: List[Variant] = field(default_factory=list)
    suggested_brand: Optional[str] = None
    selected_category: Optional[CategoryRef] = None
    public_categories: List[CategoryRef] = field(default_factory=list)
    product_tags: List[CategoryRef] = field(default_factory=list)
    vendor: str = ''

    @property
    def size_attribute(self) -> str:
        return self.age_group.attribute_name

    def add_public_category(self, category: CategoryRef) -> None:
        if all(c.id != category.id for c in self.public_categories):
            self.public_categories.append(category)

    def add_tag(self, tag: CategoryRef) -> None:
        if all(t.id != tag.id for t in self.product_tags):
            self.product_tags.append(tag)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'vendor': self.vendor,
            'reference': self.reference,
            'name': self.name,
            'original_name': self.original_name,
            'color': self.color,
            'material': self.material,
            'ecommerce_description': self.ecommerce_description,
            'csv_category': self.csv_category,
            'age_group': self.age_group.value,
            'size_attribute': self.size_attribute,
            'suggested_brand': self.suggested_brand,
            'selected_category': self.selected_category.to_dict() if self.selected_category else None,
            'public_categories': [c.to_dict() for c in self.public_categories],
            'product_tags': [t.to_dict() for t in self.product_tags],
            'variants': [v.to_dict() for v in self.variants],
        }
