"""
exoscale-auth: request signing for the Exoscale HTTP API

Resolves API credentials, signs v1, v2 and DNS requests and decodes
response bodies without losing the raw payload.
"""

__version__ = "0.1.0"

from .auth.credentials import Credentials, CredentialResolver
from .client.api import ExoscaleClient

__all__ = ["ExoscaleClient", "Credentials", "CredentialResolver", "__version__"]
