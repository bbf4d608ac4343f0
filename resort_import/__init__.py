"""Resort import workbench.

Bulk import reconciliation for the resort database: read CSV / JSON / XLSX
files, normalize and validate rows, check them against existing resorts,
record operator decisions and commit in sequential batches.
"""

__version__ = "0.1.0"
