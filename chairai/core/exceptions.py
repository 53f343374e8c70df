# chairai/core/exceptions.py
# 業務邏輯錯誤：每個錯誤帶有 code / message / status_code，
# 由 main.py 的 exception handler 統一轉成 {"error": {"code", "message"}}


class DomainError(Exception):
    """所有 Service 層業務錯誤的基底類別"""

    def __init__(self, message: str, code: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, status_code={self.status_code})"


class ProjectError(DomainError):
    pass


class ProposalError(DomainError):
    pass


class ReviewError(DomainError):
    pass


class ArtisanProfileError(DomainError):
    pass


class GeneratedImageError(DomainError):
    pass
