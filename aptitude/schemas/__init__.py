"""Pydantic schemas exchanged with the hosting application."""
