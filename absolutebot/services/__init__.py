"""Persistent stores and external collaborators."""
