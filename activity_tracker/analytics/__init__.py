"""Pure analytics over in-memory activities and records."""
