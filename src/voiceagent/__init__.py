"""voiceagent - temporal intent resolution for a voice assistant

Turns Latvian and Estonian speech transcriptions into structured reminder,
calendar, shopping and call actions with resolved timestamps.
"""

__version__ = "1.0.0"
__description__ = "Temporal intent resolution for voice assistants"

from .core.application import VoiceAgentApp

__all__ = ["VoiceAgentApp"]
