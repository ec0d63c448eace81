"""Pydantic schemas for the CleanSuite API."""
