"""Two-word codenames (``adjective noun``) that stand in for a member's identity."""
