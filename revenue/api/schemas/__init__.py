"""Pydantic models for request validation, responses and errors."""
