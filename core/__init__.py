"""Deterministic evidence-to-claim core: models, confidence, assembly, validation, correlation, provenance."""
