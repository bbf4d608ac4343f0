"""Application logging and parse-error log."""
