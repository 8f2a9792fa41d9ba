"""Request-scoped access to the objects built once in the app lifespan."""

from fastapi import Request

from carfleet.services.file_storage import FileStorage, StorageFolders
from carfleet.sheets.store import RecordStore


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_file_storage(request: Request) -> FileStorage:
    return request.app.state.file_storage


def get_folders(request: Request) -> StorageFolders:
    return request.app.state.folders
