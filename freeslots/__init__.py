"""
freeslots - find free meeting slots on your calendar for outreach coffee chats.
"""

__version__ = "0.1.0"
