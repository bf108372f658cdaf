#!/usr/bin/env python3
"""
Sclerotium Tasks

Deferred recompute tasks and the queues that run them.
"""

from .base import RecomputeTask, TaskQueue
from .queues import ImmediateQueue, ThreadPoolQueue, AsyncioQueue

__all__ = [
    'RecomputeTask',
    'TaskQueue',
    'ImmediateQueue',
    'ThreadPoolQueue',
    'AsyncioQueue',
]
