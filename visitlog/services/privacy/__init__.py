"""Address privacy helpers - resolution, masking, pseudonyms and consent."""
from .address import UNKNOWN_ADDRESS, mask_address, resolve_client_address
from .consent import ConsentGate
from .pseudonym import Pseudonymizer

__all__ = [
    "UNKNOWN_ADDRESS",
    "mask_address",
    "resolve_client_address",
    "ConsentGate",
    "Pseudonymizer",
]
