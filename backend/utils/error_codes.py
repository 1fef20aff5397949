# Error Codes System for MTERP
# Kode kesalahan

from datetime import datetime, timezone
import uuid


class ErrorCode:
    """Unified error codes: (code, message_en, message_id)"""

    # Payroll Slip Errors (6xxx)
    SLIP_INVALID_PERIOD = ("E6001", "Start date must be before end date", "Tanggal mulai harus sebelum tanggal selesai")
    SLIP_DUPLICATE_PERIOD = ("E6002", "Slip already exists for this worker and date range", "Slip gaji untuk pekerja dan periode ini sudah ada")
    SLIP_WORKER_NOT_FOUND = ("E6003", "Worker not found", "Pekerja tidak ditemukan")
    SLIP_NOT_FOUND = ("E6004", "Slip not found", "Slip gaji tidak ditemukan")
    SLIP_INVALID_STATE = ("E6005", "Slip is not in a state that allows this action", "Status slip tidak mengizinkan tindakan ini")
    SLIP_NUMBER_EXHAUSTED = ("E6006", "Could not allocate a slip number, please retry", "Gagal membuat nomor slip, silakan coba lagi")

    # Authorization Errors (61xx)
    SLIP_ALREADY_SIGNED = ("E6101", "This role has already signed this slip", "Peran ini sudah menandatangani slip")
    SLIP_ALREADY_ISSUED = ("E6102", "Slip is already issued", "Slip sudah diterbitkan")
    SLIP_INVALID_PASSPHRASE = ("E6103", "Passphrase is required (min 4 characters)", "Passphrase wajib diisi (minimal 4 karakter)")
    SLIP_UNAUTHORIZED_SIGNER = ("E6104", "Only director or owner can authorize", "Hanya direktur atau pemilik yang dapat mengotorisasi")

    # Project Errors (7xxx)
    PROJECT_NOT_FOUND = ("E7001", "Project not found", "Proyek tidak ditemukan")
    PROJECT_ITEM_NOT_FOUND = ("E7002", "Project item not found", "Item proyek tidak ditemukan")

    # General Errors (9xxx)
    GENERAL_NOT_FOUND = ("E9001", "Resource not found", "Data tidak ditemukan")
    GENERAL_FORBIDDEN = ("E9002", "Access denied", "Akses ditolak")
    GENERAL_SERVER_ERROR = ("E9003", "Server error", "Kesalahan server")
    GENERAL_VALIDATION_ERROR = ("E9004", "Validation error", "Kesalahan validasi data")


class AppError(Exception):
    """Domain error with a stable code; rendered by the HTTP layer."""

    status_code = 400

    def __init__(self, error_code: tuple, details: str = None, details_id: str = None, status_code: int = None):
        self.error_code = error_code
        self.details = details
        self.details_id = details_id
        if status_code is not None:
            self.status_code = status_code
        super().__init__(details or error_code[1])

    @property
    def code(self) -> str:
        return self.error_code[0]


class InvalidPeriod(AppError):
    def __init__(self, details: str = None, details_id: str = None):
        super().__init__(ErrorCode.SLIP_INVALID_PERIOD, details, details_id, status_code=400)


class DuplicatePeriod(AppError):
    def __init__(self, details: str = None, details_id: str = None):
        super().__init__(ErrorCode.SLIP_DUPLICATE_PERIOD, details, details_id, status_code=409)


class WorkerNotFound(AppError):
    def __init__(self, details: str = None, details_id: str = None):
        super().__init__(ErrorCode.SLIP_WORKER_NOT_FOUND, details, details_id, status_code=404)


class SlipNotFound(AppError):
    def __init__(self, details: str = None, details_id: str = None):
        super().__init__(ErrorCode.SLIP_NOT_FOUND, details, details_id, status_code=404)


class InvalidState(AppError):
    def __init__(self, details: str = None, details_id: str = None):
        super().__init__(ErrorCode.SLIP_INVALID_STATE, details, details_id, status_code=409)


class AlreadySigned(AppError):
    def __init__(self, details: str = None, details_id: str = None):
        super().__init__(ErrorCode.SLIP_ALREADY_SIGNED, details, details_id, status_code=409)


class AlreadyIssued(AppError):
    def __init__(self, details: str = None, details_id: str = None):
        super().__init__(ErrorCode.SLIP_ALREADY_ISSUED, details, details_id, status_code=409)


class InvalidPassphrase(AppError):
    def __init__(self, details: str = None, details_id: str = None):
        super().__init__(ErrorCode.SLIP_INVALID_PASSPHRASE, details, details_id, status_code=400)


class UnauthorizedSigner(AppError):
    def __init__(self, details: str = None, details_id: str = None):
        super().__init__(ErrorCode.SLIP_UNAUTHORIZED_SIGNER, details, details_id, status_code=403)


class ProjectNotFound(AppError):
    def __init__(self, details: str = None, details_id: str = None):
        super().__init__(ErrorCode.PROJECT_NOT_FOUND, details, details_id, status_code=404)


class ProjectItemNotFound(AppError):
    def __init__(self, details: str = None, details_id: str = None):
        super().__init__(ErrorCode.PROJECT_ITEM_NOT_FOUND, details, details_id, status_code=404)


def create_error_response(error_code: tuple, details: str = None, details_id: str = None):
    """
    Build the unified error payload.

    Args:
        error_code: tuple of (code, message_en, message_id)
        details: extra detail in English
        details_id: extra detail in Indonesian

    Returns:
        dict: error payload
    """
    code, msg_en, msg_id = error_code

    error_id = f"{code}-{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}-{uuid.uuid4().hex[:6].upper()}"

    return {
        "error": True,
        "error_code": code,
        "error_id": error_id,
        "message": details or msg_en,
        "message_id": details_id or msg_id,
        "details": details,
        "details_id": details_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "support_message": f"If this error persists, contact support with reference: {error_id}",
    }


def format_error_message(error: AppError) -> dict:
    """Payload for an AppError as returned by the API."""
    return {
        "detail": create_error_response(error.error_code, error.details, error.details_id)
    }
