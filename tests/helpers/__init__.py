from .fakes import RecordingNotifier, ScriptedSender
from .inmemory_store import InMemoryQueueStore
from .util import make_record, wait_until

__all__ = [
    "InMemoryQueueStore",
    "RecordingNotifier",
    "ScriptedSender",
    "make_record",
    "wait_until",
]
