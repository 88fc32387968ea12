from .definitions import JOBS, JobDefinition, JobRunner, define_job
from .queue import HttpJobQueue, InProcessJobQueue, JobQueue

__all__ = [
    "JOBS",
    "HttpJobQueue",
    "InProcessJobQueue",
    "JobDefinition",
    "JobQueue",
    "JobRunner",
    "define_job",
]
