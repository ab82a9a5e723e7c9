"""Shared helpers used by the API service and the batch jobs."""
