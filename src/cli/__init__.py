"""Command-line interface for the site drive.

This package provides the `site-drive` CLI tool which browses and edits a
repository snapshot by path, with colored output and exit codes telling
missing objects apart from invalid requests.
"""

from .models import DriveSession, ExitCode
from .output import OutputHandler
from .errors import (
    CLIError,
    LocalFileError,
    RecurseRequiredError,
)

__all__ = [
    'DriveSession',
    'ExitCode',
    'OutputHandler',
    'CLIError',
    'LocalFileError',
    'RecurseRequiredError',
]
