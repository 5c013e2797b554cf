"""Aggregate views and report rendering."""
