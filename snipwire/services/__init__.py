"""
Business logic services for SnipWire.
"""
from .taxes import (
    TaxCategory,
    TaxDefinition,
    TaxesConfig,
    ShippingTaxesType,
    DEFAULT_TAXES,
    calculate_tax,
    validate_taxes,
)
from .currency import get_currency_precision
from .tax_engine import TaxEngine, TaxLineItem, ItemTaxGroup
from .snipcart_client import SnipcartClient
