"""Exception hierarchy for the FinControl ledger API.

Every error carries an HTTP status and a fixed, user-safe Portuguese message.
The raw cause is kept on the exception chain for server-side logging and is
never rendered to the caller.
"""

from typing import ClassVar

MSG_INVALID_REQUEST = "Requisição inválida."
MSG_UNAUTHORIZED = "Não autenticado. Faça login novamente."
MSG_FORBIDDEN = "Acesso negado a este recurso."
MSG_NOT_FOUND = "Recurso não encontrado."
MSG_CONFLICT = "Este arquivo já foi processado ou está em processamento."
MSG_RATE_LIMITED = "Limite de requisições excedido. Tente novamente mais tarde."
MSG_INSUFFICIENT_CREDITS = "Créditos de IA insuficientes."
MSG_PROCESSING_FAILED = "Não foi possível processar o arquivo. Tente novamente."
MSG_UNSUPPORTED_FILE = "Tipo de arquivo não suportado. Envie um PDF ou uma imagem."
MSG_FILE_TOO_LARGE = "O arquivo excede o tamanho máximo de 10MB."
MSG_EMPTY_CSV = "O arquivo CSV está vazio ou não contém dados"
MSG_UNREADABLE_CSV = "Erro ao ler o arquivo. Salve o CSV com codificação UTF-8."
MSG_NO_VALID_ROWS = "Nenhuma transação válida para importar"
MSG_IMPORT_FAILED = "Erro ao salvar transações. Tente novamente."
MSG_NO_TYPE_SELECTED = "Selecione pelo menos um tipo de transação"
MSG_NOTHING_TO_EXPORT = "Nenhuma transação encontrada com os filtros selecionados"


class LedgerError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: ClassVar[int] = 500
    default_message: ClassVar[str] = MSG_PROCESSING_FAILED

    def __init__(self, user_message: str | None = None) -> None:
        """Initialize with an optional override of the user-facing message."""
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message)

    def to_payload(self) -> dict:
        """Render the JSON body returned to the caller."""
        return {"error": self.user_message}


class InvalidRequestError(LedgerError):
    status_code = 400
    default_message = MSG_INVALID_REQUEST


class AuthenticationError(LedgerError):
    status_code = 401
    default_message = MSG_UNAUTHORIZED


class InsufficientCreditsError(LedgerError):
    status_code = 402
    default_message = MSG_INSUFFICIENT_CREDITS


class ForbiddenError(LedgerError):
    status_code = 403
    default_message = MSG_FORBIDDEN


class NotFoundError(LedgerError):
    status_code = 404
    default_message = MSG_NOT_FOUND


class ConflictError(LedgerError):
    status_code = 409
    default_message = MSG_CONFLICT


class PayloadTooLargeError(LedgerError):
    status_code = 413
    default_message = MSG_FILE_TOO_LARGE


class RateLimitedError(LedgerError):
    status_code = 429
    default_message = MSG_RATE_LIMITED


class ProcessingFailedError(LedgerError):
    status_code = 500
    default_message = MSG_PROCESSING_FAILED


class CsvFormatError(LedgerError):
    status_code = 400
    default_message = MSG_EMPTY_CSV


class ImportRejectedError(LedgerError):
    status_code = 400
    default_message = MSG_NO_VALID_ROWS


class BatchImportError(LedgerError):
    """A chunk insert failed; earlier chunks stay committed."""

    status_code = 500
    default_message = MSG_IMPORT_FAILED

    def __init__(self, imported: int, total: int) -> None:
        """Record how many rows were committed before the failing chunk."""
        super().__init__()
        self.imported = imported
        self.total = total

    def to_payload(self) -> dict:
        """Include the committed count so the caller knows where the import stopped."""
        return {"error": self.user_message, "imported": self.imported, "total": self.total}


class AIGatewayError(Exception):
    """Transport-level failure talking to the completion endpoint.

    ``status_code`` is the upstream HTTP status, or ``None`` for connection
    errors and timeouts.
    """

    def __init__(self, status_code: int | None, detail: str = "") -> None:
        """Keep the upstream status for remediation-specific mapping."""
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"AI gateway error: status={status_code} {detail}".strip())


class StorageError(Exception):
    """Blob storage read/write failure."""
