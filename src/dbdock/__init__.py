"""dbdock: compile database engine configurations into Docker launches."""

__version__ = "0.1.0"
