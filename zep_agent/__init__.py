"""zep-agent -- a terminal Claude agent with long-term Zep memory tools."""

__version__ = "0.1.0"
