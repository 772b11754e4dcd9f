"""
batch_engine.services -- Job repository, launcher and scheduler.
"""

from batch_engine.services.launcher import JobLauncher
from batch_engine.services.repository import JobRepository
from batch_engine.services.scheduler import JobScheduler

__all__ = [
    "JobLauncher",
    "JobRepository",
    "JobScheduler",
]
