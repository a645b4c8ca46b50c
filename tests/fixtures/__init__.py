"""
Models and repositories used across the test suite.
"""
