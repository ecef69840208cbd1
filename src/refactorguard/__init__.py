"""refactorguard: verify that a refactor moved code without changing it."""

__version__ = "0.1.0"
