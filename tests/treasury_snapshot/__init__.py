"""
Tests for the treasury_snapshot package.
"""
