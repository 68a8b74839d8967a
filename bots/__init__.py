"""Discord runtime for the moderation and giveaway bot.

``bots.unified`` wires the command groups, listeners and sweepers together;
run it with ``python -m bots``.
"""

__all__ = [
    "checks",
    "community",
    "config",
    "embeds",
    "giveaway",
    "logging_utils",
    "moderation",
    "shadow",
    "sweepers",
    "unified",
]
