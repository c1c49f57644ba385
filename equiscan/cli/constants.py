"""Exit codes shared by CLI commands."""

STORE_EXIT_CODE = 3
REPORT_EXIT_CODE = 4
SYSTEM_EXIT_CODE = 1
