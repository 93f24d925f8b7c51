"""
Jobs Module - Black Box Interface

Purpose: Run fire-and-forget background jobs that report progress
Interface: dispatch(), run(), drain()
Hidden: Task scheduling, progress event publishing

Replaceable with any queue or worker system (Celery, RQ, arq).
"""

from .jobs import JobModule, generate_task_id

__all__ = ["JobModule", "generate_task_id"]
