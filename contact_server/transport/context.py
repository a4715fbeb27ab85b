"""Context object shared across worker threads."""

from dataclasses import dataclass, field

from contact_server.bootstrap.config import ServerConfig
from contact_server.handlers.page_handler import FormPage
from contact_server.lifecycle.state import ServerLifecycle
from contact_server.storage.record_store import RecordStore


@dataclass
class WorkerContext:
    """Dependencies shared across handler threads."""

    store: RecordStore
    page: FormPage
    lifecycle: ServerLifecycle = field(default_factory=ServerLifecycle)
    config: ServerConfig = field(default_factory=ServerConfig)
