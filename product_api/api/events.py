"""Event names exchanged between the Product API and its host.

Names are unprefixed here; the intercom prepends its namespace.
"""

from product_api.core.responder import RESPONSE_ERROR_EVENT


class ProductEvents:
    FIND = "product:find"
    FIND_ONE = "product:findone"
    CREATE = "product:create"
    UPDATE = "product:update"
    REMOVE = "product:remove"
    DATA = "product:data"

    RESPONSE_DATA = "response:product:data"
    RESPONSE_CREATE = "response:product:create"
    RESPONSE_UPDATE = "response:product:update"
    RESPONSE_REMOVE = "response:product:remove"
    RESPONSE_ERROR = RESPONSE_ERROR_EVENT
