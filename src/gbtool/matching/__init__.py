"""Show and video matching by ID, GUID, title and association."""
