"""
Tests for the datalogger and training packages.

Structure:
- test_*.py: pytest suites, one per module
- conftest.py: shared fixtures (fake clocks, providers)
"""
