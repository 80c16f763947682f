"""
Quantura backend: multi-tenant inventory and business management service.
"""

__version__ = "0.1.0"
