"""Token source, hosted dataset, object storage and local SQLite store."""
