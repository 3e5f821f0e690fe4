"""
Tests for the shared package.

File: evmsecure/shared/tests/__init__.py
"""
