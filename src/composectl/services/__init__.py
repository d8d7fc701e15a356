"""Service layer — orchestration and project operations returning ServiceResult.

Services may import from domain, infrastructure and backends.
They must never import from commands or output.
"""
