"""py-cord cogs: slash commands and gateway listeners."""
