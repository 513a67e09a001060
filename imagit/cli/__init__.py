"""Command line interface for imagit."""
