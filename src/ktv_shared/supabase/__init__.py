"""Supabase integrations: storage buckets and the realtime change feed."""
