"""Member registration module."""

from .manager import MemberManager, last_name_initial
from .models import MemberRecord

__all__ = ["MemberManager", "MemberRecord", "last_name_initial"]
