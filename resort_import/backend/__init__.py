"""Managed backend access: HTTP client, endpoint wrappers, audit sink."""
