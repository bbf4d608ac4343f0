"""Workflow services: normalization, validation, matching, workbench, commit."""
