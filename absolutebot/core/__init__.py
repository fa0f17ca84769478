"""Command engine and message pipeline."""
