"""Supabase integrations (auth client and storage)."""
