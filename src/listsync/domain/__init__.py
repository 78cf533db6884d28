"""Domain layer — list ids, items, move rules, snapshot mutation, commands.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
