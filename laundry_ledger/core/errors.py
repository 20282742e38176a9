from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse


class LedgerError(HTTPException):
    """Base class for ledger failures that the caller can act on.

    Every subclass carries a stable ``kind`` so API consumers can show a
    specific message without parsing ``detail``.
    """

    kind = "LedgerError"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class InvalidInput(LedgerError):
    kind = "InvalidInput"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(LedgerError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class InsufficientCredit(LedgerError):
    kind = "InsufficientCredit"
    status_code = status.HTTP_400_BAD_REQUEST


class Conflict(LedgerError):
    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT


class InvalidTarget(LedgerError):
    kind = "InvalidTarget"
    status_code = status.HTTP_409_CONFLICT


class NothingToPay(LedgerError):
    kind = "NothingToPay"
    status_code = status.HTTP_400_BAD_REQUEST


class CredentialDenied(LedgerError):
    kind = "CredentialDenied"
    status_code = status.HTTP_401_UNAUTHORIZED


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "kind": exc.kind},
    )
