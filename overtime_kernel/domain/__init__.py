"""Pure domain layer: value objects, state machine and usage arithmetic. ZERO I/O."""
