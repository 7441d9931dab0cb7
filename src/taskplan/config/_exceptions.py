class ConfigurationError(Exception):
    """Raised when planner settings are invalid."""
