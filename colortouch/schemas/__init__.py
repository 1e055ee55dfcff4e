"""Pydantic schemas for the ColorTouch API."""
