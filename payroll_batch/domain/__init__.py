"""Batch DTOs."""
