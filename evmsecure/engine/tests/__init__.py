"""
Tests for the engine package.

File: evmsecure/engine/tests/__init__.py
"""
