"""Forge pipeline stages (A: guardrails, B: generation, C: normalization, D: packaging)."""
