REQUIRED_FIELDS = ("image_url", "animal_id", "user_id", "animal_type")


class ClassificationError(Exception):
    """Base class for errors raised by the classification pipeline."""


class InvalidRequest(ClassificationError):
    def __init__(self, message: str = f"Missing required fields: {', '.join(REQUIRED_FIELDS)}"):
        super().__init__(message)


class InvalidImageUrl(ClassificationError):
    def __init__(self, message: str = "Invalid image URL provided"):
        super().__init__(message)


class ImageFetchFailed(ClassificationError):
    def __init__(self, status_code: int, reason: str):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"Failed to fetch image: {status_code} {reason}")


class StorageError(ClassificationError):
    pass


class DatastoreError(ClassificationError):
    pass


class PersistenceFailed(ClassificationError):
    """The animal record upsert failed; fatal to the request."""

    def __init__(self, details: str):
        self.details = details
        super().__init__(details)
