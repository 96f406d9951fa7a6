"""
Tax calculation for the Snipcart taxes.calculate webhook.

Snipcart posts the cart content and expects the list of taxes to apply.
Flow:
1. Group taxable items by their tax name and sum their prices before taxes
2. Compute each group's share of the cart total (split ratio)
3. Emit one tax line per configured product tax
4. Emit shipping tax line(s) according to the shipping taxes type

Sample payload: https://docs.snipcart.com/v3/webhooks/taxes
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from .currency import get_currency_precision
from .taxes import (
    ShippingTaxesType,
    TaxCategory,
    TaxDefinition,
    TaxesConfig,
    calculate_tax,
    round_half_up,
)
from ..utils.exceptions import TaxPreconditionFailure

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


@dataclass
class ItemTaxGroup:
    """Taxable items sharing one tax name."""
    sum_of_untaxed_prices: Decimal = ZERO
    split_ratio: Decimal = ZERO


@dataclass(frozen=True)
class TaxLineItem:
    """One row of the taxes.calculate response."""
    name: str
    amount: Decimal
    rate: Decimal
    number_for_invoice: str
    included_in_price: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'amount': float(self.amount),
            'rate': float(self.rate),
            'numberForInvoice': self.number_for_invoice,
            'includedInPrice': self.included_in_price,
        }


def to_decimal(value) -> Optional[Decimal]:
    """Convert a JSON number (or numeric string) to Decimal, None if not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


class TaxEngine:
    """
    Computes tax lines for a cart.

    Usage:
        engine = TaxEngine(taxes, taxes_included=True,
                           shipping_taxes_type=ShippingTaxesType.SPLIT_RATE)
        lines = engine.compute_taxes(payload['content'])
    """

    def __init__(
        self,
        taxes: TaxesConfig,
        taxes_included: bool = True,
        shipping_taxes_type: ShippingTaxesType = ShippingTaxesType.HIGHEST_RATE
    ):
        self.taxes = taxes
        self.taxes_included = taxes_included
        self.shipping_taxes_type = shipping_taxes_type

    @classmethod
    def from_settings(cls, settings) -> 'TaxEngine':
        return cls(
            taxes=settings.taxes,
            taxes_included=settings.taxes_included,
            shipping_taxes_type=settings.shipping_taxes_type,
        )

    @property
    def tax_name_prefix(self) -> str:
        return 'incl. ' if self.taxes_included else '+ '

    def compute_taxes(self, content: Dict[str, Any]) -> List[TaxLineItem]:
        """
        Compute tax lines for the content of a taxes.calculate payload.

        Args:
            content: The ``content`` object of the webhook payload

        Returns:
            Ordered list of tax lines (product taxes first, then shipping)

        Raises:
            TaxPreconditionFailure: If content lacks the data required
        """
        if not isinstance(content, dict):
            raise TaxPreconditionFailure('invalid request data for taxes calculation')

        items = content.get('items')
        shipping_information = content.get('shippingInformation')
        currency = content.get('currency')
        items_total = to_decimal(content.get('itemsTotal'))

        # All items removed from cart: Snipcart still asks for taxes
        if items_total is not None and items_total == 0:
            return []

        if (
            items_total is None
            or not isinstance(items, list)
            or not isinstance(shipping_information, dict)
            or not shipping_information
            or not currency
        ):
            raise TaxPreconditionFailure('invalid request data for taxes calculation')

        precision = get_currency_precision(currency)
        try:
            return self._tax_lines(items, items_total, shipping_information, precision)
        except InvalidOperation:
            raise TaxPreconditionFailure('amounts in taxes calculation request are out of range')

    def _tax_lines(
        self,
        items: List[Any],
        items_total: Decimal,
        shipping_information: Dict[str, Any],
        precision: int
    ) -> List[TaxLineItem]:
        groups = self.group_items(items, items_total)

        lines = []
        max_rate_tax = None
        for name, group in groups.items():
            tax = self.taxes.get_tax(name, TaxCategory.PRODUCTS)
            if tax is None:
                logger.debug(f'No product tax configured for "{name}"')
                continue
            lines.append(self._line(self.tax_name_prefix + name, group.sum_of_untaxed_prices, tax, precision))

            if tax.rate > (max_rate_tax.rate if max_rate_tax else ZERO):
                max_rate_tax = tax

        lines.extend(self.shipping_lines(shipping_information, groups, max_rate_tax, precision))
        return lines

    def group_items(self, items: List[Any], items_total: Decimal) -> Dict[str, ItemTaxGroup]:
        """
        Group taxable items by tax name and compute split ratios.

        Only the first tax of an item is honored. Taxable items without a
        tax name are ignored.
        """
        groups: Dict[str, ItemTaxGroup] = {}
        for item in items:
            if not isinstance(item, dict):
                raise TaxPreconditionFailure('invalid item in taxes calculation request')
            if not item.get('taxable'):
                continue
            item_taxes = item.get('taxes') or []
            if not isinstance(item_taxes, list) or not item_taxes:
                continue

            price = to_decimal(item.get('totalPriceWithoutTaxes', 0))
            if price is None:
                raise TaxPreconditionFailure('invalid item price in taxes calculation request')

            group = groups.setdefault(str(item_taxes[0]), ItemTaxGroup())
            group.sum_of_untaxed_prices += price

        for group in groups.values():
            if items_total != 0:
                group.split_ratio = round_half_up(group.sum_of_untaxed_prices / items_total, 2)
            else:
                group.split_ratio = ZERO

        return groups

    def shipping_lines(
        self,
        shipping_information: Dict[str, Any],
        groups: Dict[str, ItemTaxGroup],
        max_rate_tax: Optional[TaxDefinition],
        precision: int
    ) -> List[TaxLineItem]:
        """Tax lines for the shipping fees according to the shipping taxes type."""
        if self.shipping_taxes_type == ShippingTaxesType.NONE:
            return []

        raw_fees = shipping_information.get('fees')
        fees = to_decimal(raw_fees) if raw_fees is not None else ZERO
        if fees is None:
            raise TaxPreconditionFailure('invalid shipping fees in taxes calculation request')
        if fees <= 0:
            return []

        method = shipping_information.get('method')
        suffix = f' ({method})' if method else ''

        lines = []
        if self.shipping_taxes_type == ShippingTaxesType.FIXED_RATE:
            tax = self.taxes.get_first_tax(TaxCategory.SHIPPING)
            if tax:
                lines.append(self._line(self.tax_name_prefix + tax.name + suffix, fees, tax, precision))

        elif self.shipping_taxes_type == ShippingTaxesType.HIGHEST_RATE:
            if max_rate_tax:
                lines.append(self._line(self.tax_name_prefix + max_rate_tax.name + suffix, fees, max_rate_tax, precision))

        elif self.shipping_taxes_type == ShippingTaxesType.SPLIT_RATE:
            for name, group in groups.items():
                tax = self.taxes.get_tax(name, TaxCategory.PRODUCTS)
                if tax is None:
                    continue
                fees_split = round_half_up(fees * group.split_ratio, 2)
                lines.append(self._line(self.tax_name_prefix + tax.name + suffix, fees_split, tax, precision))

        return lines

    def _line(self, name: str, value: Decimal, tax: TaxDefinition, precision: int) -> TaxLineItem:
        return TaxLineItem(
            name=name,
            amount=calculate_tax(value, tax.rate, self.taxes_included, precision),
            rate=tax.rate,
            number_for_invoice=tax.number_for_invoice,
            included_in_price=self.taxes_included,
        )
