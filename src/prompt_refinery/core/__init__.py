"""Core compression, scoring and refinement engine for prompt-refinery."""
