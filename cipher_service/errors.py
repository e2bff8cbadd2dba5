from __future__ import annotations

import uuid


class ServiceError(Exception):
    def __init__(self, *, status_code: int, code: str, message: str, error_id: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.error_id = error_id or str(uuid.uuid4())


class EncryptionError(ServiceError):
    def __init__(self, *, code: str, message: str, status_code: int = 400) -> None:
        super().__init__(status_code=status_code, code=code, message=message)


class DecryptionError(ServiceError):
    def __init__(self, *, code: str, message: str, status_code: int = 400) -> None:
        super().__init__(status_code=status_code, code=code, message=message)


class ConfigurationError(Exception):
    """Required configuration is missing or unusable; the service must not start."""
