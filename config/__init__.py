"""Application settings and logging presets."""
