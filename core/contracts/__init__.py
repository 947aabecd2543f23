"""core.contracts

Stable interfaces (ABCs) shared between ``core`` and the stamping feature.

This package intentionally contains only interfaces and shared type definitions.
"""
