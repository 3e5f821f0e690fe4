"""
Tests for the risk package.

File: evmsecure/risk/tests/__init__.py
"""
