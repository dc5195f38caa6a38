"""Repository classes; each wraps an open ``sqlite3.Connection``."""
