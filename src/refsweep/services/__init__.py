"""Service layer: business logic over the Registry.

Every public operation returns a :class:`ServiceResult`.
"""

from refsweep.services.create import CreateService
from refsweep.services.deletion import AsyncDeletionService
from refsweep.services.poll import PollService
from refsweep.services.queue import QueueService
from refsweep.services.request import DeletionRequestService
from refsweep.services.result import ServiceError, ServiceResult

__all__ = [
    "AsyncDeletionService",
    "CreateService",
    "DeletionRequestService",
    "PollService",
    "QueueService",
    "ServiceError",
    "ServiceResult",
]
