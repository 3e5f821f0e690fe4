"""
Test Data Package Initialization

File: evmsecure/risk/tests/test_data/__init__.py

Makes test_data a proper Python package for importing contract test data.
"""

from .contracts import (
    ContractAddresses,
    ContractSources,
    ExplorerResponses,
)

__all__ = [
    'ContractAddresses',
    'ContractSources',
    'ExplorerResponses',
]
