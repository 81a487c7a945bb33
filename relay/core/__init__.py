"""
Core package — cross-cutting concerns.

Modules:
    config          — environment variables & settings
    logging_config  — structured JSON / pretty console logging
    errors          — exception hierarchy & handlers
    database        — async SQLAlchemy engine and session factory
    middleware      — request logging and correlation IDs
    health          — health check aggregation
    security        — bearer-token gate for admin routes
"""
