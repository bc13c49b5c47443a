from .upload import PayloadError, ProductUpload, RepoCoordinates, UploadResponse

__all__ = [
    "PayloadError",
    "ProductUpload",
    "RepoCoordinates",
    "UploadResponse",
]
