from enum import Enum


class ConnectionState(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"


class Collections:
    USERS = "users"
    USER_PREFERENCES = "userPreferences"
    JOURNAL_ENTRIES = "journalEntries"
    VOICE_NOTES = "voiceNotes"
    KICK_EVENTS = "kickEvents"
    PROGRESS = "progress"
    STREAKS = "streaks"

    ALL = (
        USERS,
        USER_PREFERENCES,
        JOURNAL_ENTRIES,
        VOICE_NOTES,
        KICK_EVENTS,
        PROGRESS,
        STREAKS,
    )


VOICE_NOTES_BUCKET = "voiceNotes"
