"""
Service layer for business logic.

This package contains the job pipeline: webhook ingestion, the serialized
processing queue, human input resolution, cleanup and live event fan-out.
"""
