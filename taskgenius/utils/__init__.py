"""Credential helpers for TaskGenius."""
