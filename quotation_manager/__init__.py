"""
Quotation and product-catalog manager for Inventu Agro.
"""

__version__ = "1.0.1"
