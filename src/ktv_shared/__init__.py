"""Shared domain layer for the KTV back office services."""
