"""Filter, sort and query layer for browsing a Stash media library."""
