"""
Tests for the treasury snapshot pipeline.
"""
