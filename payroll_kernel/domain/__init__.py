"""Pure domain helpers: clock, zoned calendar boundaries, decimal quantities."""
