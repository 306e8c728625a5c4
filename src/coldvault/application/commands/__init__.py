"""Application commands for coldvault."""

from .upload_file import (
    UploadFileCommand,
    UploadFileData,
    UploadFileResult,
    create_upload_file_command,
)
from .initiate_upload import (
    InitiateUploadCommand,
    InitiateUploadData,
    InitiateUploadResult,
    create_initiate_upload_command,
)
from .upload_chunk import (
    UploadFileChunkCommand,
    UploadChunkData,
    UploadChunkResult,
    create_upload_file_chunk_command,
)
from .complete_upload import (
    CompleteUploadCommand,
    CompleteUploadData,
    CompleteUploadResult,
    create_complete_upload_command,
)
from .initiate_retrieval import (
    InitiateRetrievalCommand,
    InitiateRetrievalResult,
    create_initiate_retrieval_command,
)

__all__ = [
    "UploadFileCommand",
    "UploadFileData",
    "UploadFileResult",
    "create_upload_file_command",
    "InitiateUploadCommand",
    "InitiateUploadData",
    "InitiateUploadResult",
    "create_initiate_upload_command",
    "UploadFileChunkCommand",
    "UploadChunkData",
    "UploadChunkResult",
    "create_upload_file_chunk_command",
    "CompleteUploadCommand",
    "CompleteUploadData",
    "CompleteUploadResult",
    "create_complete_upload_command",
    "InitiateRetrievalCommand",
    "InitiateRetrievalResult",
    "create_initiate_retrieval_command",
]
