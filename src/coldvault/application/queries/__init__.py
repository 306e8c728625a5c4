"""Application queries for coldvault."""

from .get_upload_progress import (
    GetUploadProgressQuery,
    UploadProgress,
    create_get_upload_progress_query,
)
from .check_retrieval_status import (
    CheckRetrievalStatusQuery,
    RetrievalStatusResult,
    create_check_retrieval_status_query,
)
from .get_file_content import (
    GetFileContentQuery,
    FileContentResult,
    create_get_file_content_query,
)

__all__ = [
    "GetUploadProgressQuery",
    "UploadProgress",
    "create_get_upload_progress_query",
    "CheckRetrievalStatusQuery",
    "RetrievalStatusResult",
    "create_check_retrieval_status_query",
    "GetFileContentQuery",
    "FileContentResult",
    "create_get_file_content_query",
]
