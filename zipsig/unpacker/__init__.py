from .verifier import Verifier, VerificationResult, Reason, VerifyState
from .extractor import Extractor, ExtractionResult

__all__ = ["Verifier", "VerificationResult", "Reason", "VerifyState", "Extractor", "ExtractionResult"]
