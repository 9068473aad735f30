"""
Configuration layers for Modmail.

- **app_configuration.py**: YAML file settings (database path, relay tuning).
- **relay_config.py**: Per-community values moderators change at runtime
  (inbox channel, block role), persisted in SQLite.
"""
