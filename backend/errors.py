"""Error kinds raised by the article API and store.

Every kind carries the HTTP status and the message that end up in the
``{"error": {"message": ...}}`` envelope.
"""

INVALID_ID_MESSAGE = "Invalid ID format"
NOT_FOUND_MESSAGE = "Article not found"
MISSING_FIELDS_MESSAGE = "Missing required fields"
STORAGE_FAILED_MESSAGE = "Database operation failed"


class ArticleError(Exception):
    status_code = 500
    message = STORAGE_FAILED_MESSAGE

    def __init__(self, message=None, status_code=None):
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ArticleError):
    status_code = 400
    message = MISSING_FIELDS_MESSAGE


class MalformedKeyError(ArticleError):
    # 404 on the detail lookup, 400 on update/delete
    status_code = 400
    message = INVALID_ID_MESSAGE


class NotFoundError(ArticleError):
    status_code = 404
    message = NOT_FOUND_MESSAGE


class StorageError(ArticleError):
    status_code = 500
    message = STORAGE_FAILED_MESSAGE
