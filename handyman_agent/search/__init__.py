"""Web and neural search providers."""
