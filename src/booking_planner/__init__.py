"""Multi-agent booking router: a coordinator delegating to tool-using sub-agents."""

__version__ = "0.1.0"
