"""SQLite persistence: one long-lived aiosqlite connection plus schema management."""
