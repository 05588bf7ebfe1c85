"""
Fact Ingestion Module
"""
from .fact_loader import (
    DataLakeFactSource,
    FactSource,
    FileFormat,
    InMemoryFactSource,
    facts_from_frame,
    load_fact_file,
)

__all__ = [
    "DataLakeFactSource",
    "FactSource",
    "FileFormat",
    "InMemoryFactSource",
    "facts_from_frame",
    "load_fact_file",
]
