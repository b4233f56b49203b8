"""Application use cases."""

from tunetransfer.application.use_cases.sync_library import (
    SyncLibraryCommand,
    SyncLibraryUseCase,
    sync_library,
)

__all__ = ["SyncLibraryCommand", "SyncLibraryUseCase", "sync_library"]
