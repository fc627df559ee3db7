"""Priority run queue, cooperative thread scheduler, locks, channels and related helpers."""

__version__ = "0.1.0"

__all__ = [
    "channel",
    "delegate",
    "envconfig",
    "faults",
    "lock",
    "peripherals",
    "runqueue",
    "sendcell",
    "threads",
    "threadspec",
]