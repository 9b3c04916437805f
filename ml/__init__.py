"""Image normalization, recognition backends and recycling guidance."""
