"""Keep Java test methods and their tracking-server records in sync."""

__version__ = "0.1.0"
