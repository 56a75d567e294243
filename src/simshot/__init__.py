"""simshot - iOS Simulator screenshot capture for the command line and MCP."""

__version__ = "0.1.0"
