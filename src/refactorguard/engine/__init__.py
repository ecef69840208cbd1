"""Extraction, fingerprinting and matching engine."""
