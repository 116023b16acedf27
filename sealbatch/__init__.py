"""Batch runner for Seal allow-list and subscription workflows on Sui testnet."""

__version__ = "2.1.0"
