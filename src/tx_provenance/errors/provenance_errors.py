"""ProvenanceError — base exception class and the report-generation taxonomy."""

from __future__ import annotations


class ProvenanceError(Exception):
    """Base error for all provenance report operations.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code string.
        step: Pipeline step that failed, filled in by the pipeline when the
            error escapes one of its steps.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "provenance-error",
        step: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.step = step

    def __str__(self) -> str:
        if self.step:
            return f"[{self.step}] {self.message}"
        return self.message


class LookupFailure(ProvenanceError):
    """A referenced transaction could not be retrieved from the ledger."""

    def __init__(self, message: str, *, txid: str = "", step: str | None = None) -> None:
        super().__init__(message, code="lookup-failure", step=step)
        self.txid = txid


class IndexOutOfRange(ProvenanceError):
    """An input references an output index the prior transaction does not have."""

    def __init__(
        self,
        message: str,
        *,
        index: int = 0,
        output_count: int = 0,
        step: str | None = None,
    ) -> None:
        super().__init__(message, code="index-out-of-range", step=step)
        self.index = index
        self.output_count = output_count


class AddressDecodeFailure(ProvenanceError):
    """A locking script or address string is not a standard address form."""

    def __init__(self, message: str, *, step: str | None = None) -> None:
        super().__init__(message, code="address-decode-failure", step=step)


class PreconditionViolation(ProvenanceError):
    """A step was invoked on data that does not satisfy its precondition."""

    def __init__(self, message: str, *, step: str | None = None) -> None:
        super().__init__(message, code="precondition-violation", step=step)


class ReportWriteFailure(ProvenanceError):
    """The report artifact could not be created or written."""

    def __init__(self, message: str, *, path: str = "", step: str | None = None) -> None:
        super().__init__(message, code="report-write-failure", step=step)
        self.path = path
