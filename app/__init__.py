"""Workflow automation engine application package."""
