"""
Invoicer - stock-backed invoicing backend
"""
__version__ = "0.1.0"
