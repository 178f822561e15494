# backend/docflow/utils/serialization.py
from decimal import Decimal
from typing import Optional, Union

SizeValue = Union[int, Decimal, str, None]


def document_size(value: SizeValue) -> int:
    """Narrow a stored document size to a plain number (missing sizes become 0)"""
    if value is None:
        return 0
    if isinstance(value, bool):
        raise TypeError("file_size must be numeric")
    return int(value)


def version_size(value: SizeValue) -> Optional[str]:
    """Exported version sizes may exceed the safe-integer range of JSON clients, so they travel as strings"""
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError("exported_file_size must be numeric")
    return str(int(value))
