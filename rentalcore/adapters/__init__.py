"""
Adapters layer - External integrations (hosted reservation store).
"""

from .mock_store import MockReservationStore
from .supabase_store import SupabaseStore

__all__ = ["MockReservationStore", "SupabaseStore"]
