"""Version 1 of the Dial a Service API."""
