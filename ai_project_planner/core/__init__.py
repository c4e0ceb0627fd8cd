"""
Core modules for AI Project Planner.

This package contains quota bookkeeping, prompt construction,
response ingestion, error classification and the generation pipeline.
"""
