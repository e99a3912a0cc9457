"""IR records and structured error values."""
