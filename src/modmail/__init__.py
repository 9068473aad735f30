"""
Modmail - Anonymous codename relay between members and a moderation team

Modmail forwards direct messages sent to the bot into a private moderator
inbox, one thread per member, and relays moderator replies back. Moderators
only ever see a two-word codename such as ``peaceful bonefish``; the member's
identity stays inside the bot's database.

Core Components:

- **Codename Generator**: Picks unused adjective/noun pairs from fixed word lists
- **Identity Store**: SQLite-backed mapping between members, codenames and threads
- **Relay Router**: Decides, per inbound event, what to persist and what to send
- **Relay Queue**: Per-conversation workers that keep each member's messages in order
- **Slash Commands**: ``/close``, ``/block``, ``/inbox`` and ``/blockrole``
- **Interactive Console**: Live status, conversation listing, restart/shutdown

Usage:
    from modmail.main import main
    main()  # Starts the bot with console interface
"""
