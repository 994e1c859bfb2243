"""Scout: multi-agent product discovery interviews."""

__version__ = "0.1.0-dev"
