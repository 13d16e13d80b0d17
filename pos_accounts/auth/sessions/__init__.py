"""Server-side sessions for authenticated principals."""

from .store import SessionStore, current_session_store, init_app
