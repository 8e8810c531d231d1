"""Pure types for the overtime batch layer."""
