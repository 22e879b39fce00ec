"""Database repository and operations."""

from .supabase_client import SupabaseRepository, get_repository

__all__ = ["SupabaseRepository", "get_repository"]
