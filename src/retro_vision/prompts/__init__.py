"""Prompt templates for the two generation stages."""
