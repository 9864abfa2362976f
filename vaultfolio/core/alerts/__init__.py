"""Target price alert delivery."""
