"""Version information for geoclue-mcp"""

__version__ = "0.5.0"
