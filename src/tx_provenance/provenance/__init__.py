"""Transaction provenance — input resolution, output classification, reporting."""

from tx_provenance.provenance.pipeline import ProvenanceService

__all__ = ["ProvenanceService"]
