"""
Data Quality Module
"""
from .validators import DataValidator, ValidationResult, ValidationStatus, create_facts_validator

__all__ = [
    "DataValidator",
    "ValidationResult",
    "ValidationStatus",
    "create_facts_validator",
]
