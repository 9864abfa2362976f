"""Core domain logic for Vaultfolio."""
