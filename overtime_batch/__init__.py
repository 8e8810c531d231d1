"""
Overtime batch: the periodic auto clock-out job and its in-process scheduler.
"""
