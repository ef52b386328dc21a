"""Process exit codes used by the docstore CLI."""

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
STORE_ERROR = 3
PLAN_ERROR = 4
