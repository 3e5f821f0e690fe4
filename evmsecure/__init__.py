"""
EVM Secure - on-chain risk analysis for token allowances and contract safety.

File: evmsecure/__init__.py
"""

__version__ = "0.1.0"
