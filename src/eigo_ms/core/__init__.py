"""
Core Infrastructure for eigo-ms.

This package provides foundational components:
    - config.py: Configuration loading and validation
    - errors.py: Error codes and LessonError hierarchy
    - logging/: Structured logging with numeric levels
    - metrics.py: Prometheus metrics collection
"""
