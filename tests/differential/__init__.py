"""
Property-based tests for the duplication pipeline.

Hypothesis generates random buffers and checks the properties every scan must
hold: similarity is symmetric and bounded, normalization is deterministic and
ignores renaming, and no block is reported twice.

Usage:
    pytest tests/differential/ -v
    pytest tests/differential/ -v --hypothesis-seed=42  # Reproducible
    HYPOTHESIS_PROFILE=thorough pytest tests/differential/
"""
