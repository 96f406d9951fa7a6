"""
Tax definitions and tax calculation helpers.

Tax definitions are stored the same way the Snipcart dashboard exports
them: a JSON list of rows, each with a name, a rate, an invoice label and
an ``appliesOnShipping`` list (``[1]`` marks a shipping tax, ``[]`` a
product tax).
"""
import json
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..utils.exceptions import ConfigurationError


RATE_PATTERN = re.compile(r'^[-+]?[0-9]*[.]?[0-9]+$')


class TaxCategory(Enum):
    """Which definitions a lookup should consider."""
    PRODUCTS = 1
    SHIPPING = 2
    ALL = 3


class ShippingTaxesType(str, Enum):
    """How taxes are applied on shipping fees."""
    NONE = 'none'
    FIXED_RATE = 'fixed-rate'
    HIGHEST_RATE = 'highest-rate'
    SPLIT_RATE = 'split-rate'


@dataclass(frozen=True)
class TaxDefinition:
    """A configured tax rate."""
    name: str
    rate: Decimal
    number_for_invoice: str = ''
    applies_on_shipping: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TaxDefinition':
        applies = data.get('appliesOnShipping')
        if isinstance(applies, (list, tuple)):
            applies_on_shipping = bool(applies and applies[0])
        else:
            applies_on_shipping = bool(applies)

        return cls(
            name=str(data['name']),
            rate=Decimal(str(data['rate'])),
            number_for_invoice=str(data.get('numberForInvoice') or ''),
            applies_on_shipping=applies_on_shipping,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'rate': str(self.rate),
            'numberForInvoice': self.number_for_invoice,
            'appliesOnShipping': [1] if self.applies_on_shipping else [],
        }


DEFAULT_TAXES = [
    {
        'name': 'vat_20',
        'numberForInvoice': '20% VAT',
        'rate': '0.20',
        'appliesOnShipping': [],
    },
    {
        'name': 'shipping_10',
        'numberForInvoice': '10% VAT (Shipping)',
        'rate': '0.10',
        'appliesOnShipping': [1],
    },
]


def validate_taxes(rows: List[Dict[str, Any]]) -> None:
    """
    Validate raw tax definition rows.

    Rules:
    - at least one row
    - "name" and "rate" may not be empty
    - "rate" must be a decimal literal
    - at least one product (non-shipping) tax

    Raises:
        ConfigurationError: listing every problem found
    """
    if not rows:
        raise ConfigurationError(
            'Taxes configuration has no entries. At least 1 tax setting is required.'
        )

    problems = []
    product_taxes = 0
    for row_number, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            problems.append(f'Taxes row [{row_number}]: entry must be an object')
            continue
        name = row.get('name')
        rate = row.get('rate')
        if not name or rate in (None, ''):
            problems.append(f'Taxes row [{row_number}]: "name" and "rate" may not be empty')
        elif not RATE_PATTERN.match(str(rate)):
            problems.append(f'Taxes row [{row_number}]: "rate" value needs to be a decimal')
        elif not 0 <= Decimal(str(rate)) <= 1:
            problems.append(f'Taxes row [{row_number}]: "rate" value needs to be between 0 and 1')

        applies = row.get('appliesOnShipping')
        if not (isinstance(applies, (list, tuple)) and applies and applies[0]):
            product_taxes += 1

    if product_taxes < 1:
        problems.append(
            'Taxes configuration has only shipping taxes set. '
            'At least 1 product tax setting is required.'
        )

    if problems:
        raise ConfigurationError('Invalid taxes configuration', problems=problems)


class TaxesConfig:
    """
    Read-only, ordered collection of tax definitions.

    Usage:
        taxes = TaxesConfig.from_json(os.getenv('SNIPWIRE_TAXES'))
        vat = taxes.get_tax('vat_20', TaxCategory.PRODUCTS)
    """

    def __init__(self, definitions):
        self._definitions: Tuple[TaxDefinition, ...] = tuple(definitions)

    @classmethod
    def from_rows(cls, rows: Optional[List[Dict[str, Any]]]) -> 'TaxesConfig':
        """Build from raw rows, falling back to DEFAULT_TAXES when empty."""
        if not rows:
            rows = DEFAULT_TAXES
        validate_taxes(rows)
        try:
            return cls(TaxDefinition.from_dict(row) for row in rows)
        except (KeyError, InvalidOperation) as e:
            raise ConfigurationError(f'Invalid taxes configuration: {e}')

    @classmethod
    def from_json(cls, raw: Optional[str]) -> 'TaxesConfig':
        if not raw:
            return cls.from_rows(None)
        try:
            rows = json.loads(raw)
        except ValueError as e:
            raise ConfigurationError(f'Taxes configuration is not valid JSON: {e}')
        if not isinstance(rows, list):
            raise ConfigurationError('Taxes configuration must be a JSON list')
        return cls.from_rows(rows)

    def __iter__(self):
        return iter(self._definitions)

    def __len__(self):
        return len(self._definitions)

    def get_taxes(self, category: TaxCategory = TaxCategory.ALL) -> List[TaxDefinition]:
        if category == TaxCategory.PRODUCTS:
            return [tax for tax in self._definitions if not tax.applies_on_shipping]
        if category == TaxCategory.SHIPPING:
            return [tax for tax in self._definitions if tax.applies_on_shipping]
        return list(self._definitions)

    def get_tax(self, name: str, category: TaxCategory = TaxCategory.ALL) -> Optional[TaxDefinition]:
        for tax in self.get_taxes(category):
            if tax.name == name:
                return tax
        return None

    def get_first_tax(self, category: TaxCategory = TaxCategory.ALL) -> Optional[TaxDefinition]:
        taxes = self.get_taxes(category)
        return taxes[0] if taxes else None


def round_half_up(value: Decimal, digits: int) -> Decimal:
    """Round half away from zero to a fixed number of decimal places."""
    return value.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)


def calculate_tax(value, rate, included_in_price: bool = True, digits: int = 2) -> Decimal:
    """
    Calculate the tax on a given price.

    Args:
        value: Price the tax is calculated from
        rate: Tax rate as decimal fraction (e.g. 0.20)
        included_in_price: True if the tax is already contained in value
            (value is gross), False if it is added on top (value is net)
        digits: Number of decimal places of the result

    Returns:
        Tax amount rounded to ``digits`` places
    """
    value = Decimal(str(value))
    rate = Decimal(str(rate))

    if included_in_price:
        value_before_tax = value / (1 + rate)
        tax = value - value_before_tax
    else:
        tax = value * rate

    return round_half_up(tax, digits)
