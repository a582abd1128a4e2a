"""Shared constants for Temporal workflows."""

from lextrust.core.config import settings

# Task Queues
DEFAULT_TASK_QUEUE = settings.temporal_task_queue

# Timeouts
INGESTION_ACTIVITY_TIMEOUT_SECONDS = 1800  # one adapter, sequential candidates
LEARNING_ACTIVITY_TIMEOUT_SECONDS = 600
SHORT_ACTIVITY_TIMEOUT_SECONDS = 60
