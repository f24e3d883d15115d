"""State layer.

Holds the last known leak flag per device. Only the bridge writes to it.
"""
