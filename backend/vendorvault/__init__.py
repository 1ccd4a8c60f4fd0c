"""
VendorVault - trading card inventory tracking for vendors.
"""

__version__ = "0.1.0"
