from typing import Literal

from .summary import get_summary_status, get_consignments_status

__all__ = [
    "StatusTarget",
    "get_summary_status",
    "get_consignments_status"
]

StatusTarget = Literal["summary", "consignments"]
