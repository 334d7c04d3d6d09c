from typing import Any, Dict
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class UploadServerError(Exception):
    """
    Base class for errors reported back to the client as
    {"status": "error", "message": ...}.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"status": "error", "message": self.message}


class PathViolation(UploadServerError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Path is outside the upload directory"):
        super().__init__(message)


class InvalidAction(UploadServerError):
    def __init__(self, action: str):
        super().__init__(f"Invalid action: {action!r} (expected new, overwrite or resume)")
        self.action = action


class InvalidRequest(UploadServerError):
    pass


class SizeLimitExceeded(UploadServerError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


class CannotResume(UploadServerError):
    pass


class ChunkOutOfOrder(UploadServerError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, expected: int, received: int):
        super().__init__(f"Chunk index out of order: expected {expected}, received {received}")
        self.expected = expected
        self.received = received

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["expected_chunk"] = self.expected
        payload["received_chunk"] = self.received
        return payload


class NotFound(UploadServerError):
    status_code = status.HTTP_404_NOT_FOUND


class PreviewUnavailable(UploadServerError):
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE


class IOFailure(UploadServerError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def upload_server_error_handler(request: Request, exc: UploadServerError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UploadServerError, upload_server_error_handler)
