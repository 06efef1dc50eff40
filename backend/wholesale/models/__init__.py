from .catalog import Category, Product, VendorPriceOverride, BulkPriceOverride
from .orders import Order, OrderItem, OrderTax, Invoice, InvoiceItem, InvoiceTax, OrderPayment
from .credits import VendorCreditLedgerEntry, OrderCreditApplication

__all__ = [
    'Category', 'Product', 'VendorPriceOverride', 'BulkPriceOverride',
    'Order', 'OrderItem', 'OrderTax', 'Invoice', 'InvoiceItem', 'InvoiceTax', 'OrderPayment',
    'VendorCreditLedgerEntry', 'OrderCreditApplication',
]
