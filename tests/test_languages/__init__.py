"""Per-language extraction tests."""
