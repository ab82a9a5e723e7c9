"""Helm Sports API service package."""
