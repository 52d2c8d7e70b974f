from cardledger.db.database import async_session_factory, init_db
from cardledger.db.operations import (
    get_blob,
    get_blob_version,
    insert_blob,
    put_blob_version,
    update_blob,
    write_blob,
)

__all__ = [
    "async_session_factory",
    "get_blob",
    "get_blob_version",
    "init_db",
    "insert_blob",
    "put_blob_version",
    "update_blob",
    "write_blob",
]
