"""Pydantic schemas for TaskGenius."""
