"""Command-line entry points for n00pin."""
