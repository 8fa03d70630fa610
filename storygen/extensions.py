from flask_wtf import CSRFProtect

from .services.story_session import StorySessionStore

csrf = CSRFProtect()
story_sessions = StorySessionStore()
