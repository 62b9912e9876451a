"""Interview Listener: realtime interview transcription and question classification."""

__version__ = "0.1.0"
