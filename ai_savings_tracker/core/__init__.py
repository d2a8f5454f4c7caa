"""
Core modules for AI Savings Tracker.

This package contains usage aggregation, pricing comparison,
checkpoint progression, and configuration merging.
"""
