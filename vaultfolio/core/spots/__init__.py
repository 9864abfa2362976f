"""Purchase location matching."""
