"""Command-line interface for Vaultfolio."""
