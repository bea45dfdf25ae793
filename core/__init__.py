"""
Core modules for the Firefly AI categorizer.

This package contains:
- config: Application configuration and settings
- events: Typed job lifecycle events
- exceptions: Custom exception classes
- job_store: In-memory job registry
- logger: Logging configuration
- normalize: Transaction description cleanup
- schema: Pydantic models for jobs and requests
- webhook: Webhook payload validation
"""
