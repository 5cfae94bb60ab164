"""HTTP adapter for the garden pipeline."""
