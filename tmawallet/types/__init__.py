from .wire import AccessData, AccessRequest, AccessResponse, AddressReport

__all__ = [
    "AccessData",
    "AccessRequest",
    "AccessResponse",
    "AddressReport",
]
