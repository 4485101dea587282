"""Core modules for TaskGenius."""
