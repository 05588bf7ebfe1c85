"""
Data Generation Module
"""
from .generators import CatalogGenerator, DataGenerator, SellerFactGenerator

__all__ = [
    "CatalogGenerator",
    "DataGenerator",
    "SellerFactGenerator",
]
