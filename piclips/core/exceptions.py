from fastapi import status


class PiClipsError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(PiClipsError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidRequestError(PiClipsError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(PiClipsError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(PiClipsError):
    status_code = status.HTTP_403_FORBIDDEN
