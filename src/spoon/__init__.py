"""spoon - open any repository in a cached checkout with your agent."""

__version__ = "0.3.0"
