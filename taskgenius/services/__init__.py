"""Domain services for TaskGenius."""
