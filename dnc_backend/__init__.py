"""
DNC Compliance Backend Package.

FastAPI service layer for Do-Not-Call compliance: batch risk scoring of lead
lists against the federal DNC registry, removed-number tracking and known
litigators, and ingestion of FTC change-list files into the registry.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, exceptions and dependencies
    - models: Pydantic schemas and enums
    - repositories: Store interfaces with Postgres, in-memory and blob
      storage implementations
    - services: Business logic services
    - jobs: Change-list worker
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
