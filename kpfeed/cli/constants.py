"""Process exit codes returned by the CLI."""

SUCCESS_EXIT_CODE = 0
SYSTEM_EXIT_CODE = 1
VALIDATION_EXIT_CODE = 2
NETWORK_EXIT_CODE = 3
FORMAT_EXIT_CODE = 4
ENCODING_EXIT_CODE = 5
CURSOR_EXIT_CODE = 6
