"""
Data quality error classifications for persisted checkpoint records.

A record that cannot be decoded, or decodes to the wrong shape, is treated
as "no prior state" when a machine is constructed.
"""

from typing import Any, Dict, Optional


class MalformedRecordError(Exception):
    """Checkpoint data exists but is in an incorrect format."""

    def __init__(self, message: str, raw_data: Optional[str] = None,
                 expected_format: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.raw_data = raw_data
        self.expected_format = expected_format
        self.recoverable = True
