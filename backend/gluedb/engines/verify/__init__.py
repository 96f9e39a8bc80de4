"""
Verification engine: expected results -> generated assertion script.
"""

from gluedb.engines.verify.generator import (
    AssertionKind,
    AssertionStatement,
    GeneratedVerification,
    VerificationScript,
    generate,
    run_verification,
)
from gluedb.engines.verify.validation import ValidationResult, Validator, cell, row_size

__all__ = [
    "AssertionKind",
    "AssertionStatement",
    "GeneratedVerification",
    "VerificationScript",
    "generate",
    "run_verification",
    "ValidationResult",
    "Validator",
    "cell",
    "row_size",
]
