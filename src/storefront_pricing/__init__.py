"""
Storefront Pricing Package

Business rules for the storefront checkout and marketing tools.
Computes order totals (Subtotal → Discount → Shipping → VAT → Total),
validates promo codes, evaluates customer segments and scores A/B tests.
"""

__version__ = "1.0.0"
