# OSC address mapping for timer status.
# Change these to match whatever the receiving app listens on.
#
# Format: field → OSC address
OSC_ADDRESSES = {
    "remaining_seconds": "/timer/remaining",   # int, seconds left
    "display":           "/timer/display",     # string: M:SS
    "timer_active":      "/timer/active",      # int: 1 = counting, 0 = paused
    "phase":             "/timer/phase",       # string: idle/starting/running/finished/error/stopped
}

# If the receiver expects integer codes for the phase instead of strings,
# set USE_STRING_VALUES = False.
USE_STRING_VALUES = True

VALUE_CODES = {
    "idle":     0,
    "starting": 1,
    "running":  2,
    "finished": 3,
    "error":    4,
    "stopped":  5,
}
