"""API routers for TaskGenius."""
