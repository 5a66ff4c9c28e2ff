from typing import Optional


class PanError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigPathMissing(PanError):
    def __init__(self, message: str = "config file path is not set") -> None:
        super().__init__(message)


class PermissionDenied(PanError):
    pass


class ConfigFileNotExist(PanError):
    pass


class ConfigParseError(PanError):
    pass


class UserNotFound(PanError):
    def __init__(self, message: str = "account not found") -> None:
        super().__init__(message)


class ValidationError(PanError):
    pass


class RemoteOperationError(PanError):
    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code

    def __str__(self) -> str:
        prefix = f"[{self.status_code}] " if self.status_code else ""
        if self.code:
            return f"{prefix}{self.code}: {self.message}"
        return f"{prefix}{self.message}"


class RestorationFailed(PanError):
    pass
