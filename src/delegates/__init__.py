"""Delegate management — operations, batch runner and error scrubbing."""

from src.delegates.batch import BatchRunner, expand_operations, parse_batch_csv, request_problem
from src.delegates.operations import add_delegate, list_delegates, remove_delegate, run_operation

__all__ = [
    "BatchRunner",
    "expand_operations",
    "parse_batch_csv",
    "request_problem",
    "add_delegate",
    "list_delegates",
    "remove_delegate",
    "run_operation",
]
