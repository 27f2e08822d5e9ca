"""Standard exit codes for pgquerygen.

Exit codes follow Unix conventions; inference failures get their own code
so scripts can tell a bad query apart from a bad connection.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for pgquerygen commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    USAGE_ERROR = 2
    INPUT_ERROR = 3
    OUTPUT_ERROR = 4
    NETWORK_ERROR = 5
    TIMEOUT = 6
    CONFIG_ERROR = 7
    INFERENCE_ERROR = 8
