"""Field descriptors, filter state and query construction."""
