"""TaskGenius - task management service with AI-assisted advice."""

__version__ = "1.0.0"
