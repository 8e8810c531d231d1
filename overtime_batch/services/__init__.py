"""Imperative shell of the overtime batch layer."""
