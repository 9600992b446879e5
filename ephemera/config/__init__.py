"""
Configuration

Environment-driven settings for Redis, Celery, logging and the service itself.
"""
