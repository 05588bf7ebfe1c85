"""
Seller Economics Aggregation Engine
"""

__version__ = "1.0.0"
