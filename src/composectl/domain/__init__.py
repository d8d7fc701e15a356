"""Domain layer — project model, service selection, lifecycle and errors.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, backends, commands, or config.
"""
