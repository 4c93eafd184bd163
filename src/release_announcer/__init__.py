"""Release announcer - post release notifications to Discord webhooks."""

__version__ = "0.1.0"
