"""Adapters layer - connects the store to the outside world."""
