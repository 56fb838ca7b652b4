"""
Transport — the REST backend behind narrow collaborator interfaces.

    from storefront import transport as T

    http = T.HttpTransport.from_config(config)
    auth = T.AuthApi(http)                              # AuthGateway
    authorized = T.AuthorizedTransport(http, session)
    orders = T.OrderApi(authorized)                     # OrderGateway
"""

from storefront.transport._http import HttpTransport, interpret, error_message
from storefront.transport._authorized import AuthorizedTransport
from storefront.transport._api import AuthApi, OrderApi, AddressApi, CartApi, PaymentApi
from storefront.transport import _schemas as schemas

__all__ = (
    "HttpTransport",
    "interpret",
    "error_message",
    "AuthorizedTransport",
    "AuthApi",
    "OrderApi",
    "AddressApi",
    "CartApi",
    "PaymentApi",
    "schemas",
)
