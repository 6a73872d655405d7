"""Command-line interface for prompt-refinery."""
