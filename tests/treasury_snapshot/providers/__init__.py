"""
Tests for the chain and explorer providers.
"""
