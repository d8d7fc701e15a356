"""Infrastructure layer — project assembly, execution contexts, signals.

May import from domain. Must never import from services, commands, or output.
"""
