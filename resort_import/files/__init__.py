"""Import file readers."""
