"""
Tests for the command-line interface.

File: evmsecure/tests/__init__.py
"""
