"""
Utility helpers for Modmail.

- **logger.py**: Centralized logging with colored prompt_toolkit console output
  and one log file per bot session under ``logs/``.
- **text.py**: Message content helpers (attachment flattening, chunking to
  Discord's message length limit, log-safe previews).
"""
