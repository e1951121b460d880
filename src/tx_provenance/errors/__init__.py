"""Error taxonomy for provenance report generation."""

from tx_provenance.errors.chain_errors import ChainError, RPCError
from tx_provenance.errors.provenance_errors import (
    AddressDecodeFailure,
    IndexOutOfRange,
    LookupFailure,
    PreconditionViolation,
    ProvenanceError,
    ReportWriteFailure,
)

__all__ = [
    "AddressDecodeFailure",
    "ChainError",
    "IndexOutOfRange",
    "LookupFailure",
    "PreconditionViolation",
    "ProvenanceError",
    "RPCError",
    "ReportWriteFailure",
]
