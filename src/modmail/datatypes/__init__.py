"""Plain data types shared across the relay: Discord ID wrappers, conversations and events."""
