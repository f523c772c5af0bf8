"""Player service: timed playback of a presentation.

The scheduler has no server dependencies and is shared with the client player.
"""

__version__ = "1.0.0"
