"""Custom resources served by Stackwork."""

from .certificate import CertificateProperties, CertificateProvider, ValidationMethod

__all__ = [
    "CertificateProperties",
    "CertificateProvider",
    "ValidationMethod",
]
