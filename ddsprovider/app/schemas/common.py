"""Common schema definitions for DDS Provisioner.

This module contains the per-field declarations the resource descriptor
uses for change tracking: which fields the server may fill in, which ones
force replacement, and when a difference should be ignored.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

DiffSuppressFunc = Callable[[str, Any, Any, Any], bool]


@dataclass(frozen=True)
class FieldSchema:
    """Declaration of one resource field.

    Attributes:
        computed: The server fills the value in when it is not declared
        force_new: A change can only be applied by replacing the resource
        sensitive: The value must never be logged
        diff_suppress: Called with (key, old, new, descriptor); a True
            result hides the difference
    """

    computed: bool = False
    force_new: bool = False
    sensitive: bool = False
    diff_suppress: Optional[DiffSuppressFunc] = None
