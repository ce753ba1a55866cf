"""HTTP browse API."""
