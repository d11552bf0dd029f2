from .unit_of_work import SqlAlchemyUnitOfWork
from .task_queue import InMemoryTaskQueue, RedisTaskQueue

__all__ = [
    "SqlAlchemyUnitOfWork",
    "InMemoryTaskQueue",
    "RedisTaskQueue",
]
