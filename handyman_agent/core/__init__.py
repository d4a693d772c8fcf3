"""Resolution pipeline and session state machine."""
