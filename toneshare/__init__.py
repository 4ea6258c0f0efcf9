"""toneshare - build, undo and share guitar/bass signal chains."""

from toneshare.editor import EditorSession
from toneshare.history import History
from toneshare.models import AMPLIFIER, Amplifier, Chain, Pedal, User

__all__ = ["EditorSession", "History", "Chain", "Pedal", "Amplifier", "User", "AMPLIFIER"]
