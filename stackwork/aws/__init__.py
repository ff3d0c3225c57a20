"""AWS collaborators: client factory, ACM oracle and Route 53 reconciler."""

from .acm import AcmCertificateOracle, CertificateDescription, CertificateStatus
from .clients import ClientFactory, error_code
from .route53 import ChallengeRecord, RecordReconciler

__all__ = [
    "AcmCertificateOracle",
    "CertificateDescription",
    "CertificateStatus",
    "ChallengeRecord",
    "ClientFactory",
    "RecordReconciler",
    "error_code",
]
