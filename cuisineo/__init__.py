"""Cuisineo: recipe sharing backed by Supabase."""

__version__ = "0.1.0"
