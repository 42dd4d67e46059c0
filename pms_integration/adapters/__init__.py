"""
PMS vendor adapters
"""

from .apaleo import ApaleoAdapter
from .cloudbeds import CloudbedsAdapter
from .custom import CustomRESTAdapter
from .graphql import GraphQLAdapter
from .mews import MewsAdapter
from .opera import OperaAdapter
from .protel import ProtelAdapter
from .rest import IDEMPOTENT_METHODS, RESTAdapter

__all__ = [
    "RESTAdapter",
    "GraphQLAdapter",
    "CloudbedsAdapter",
    "OperaAdapter",
    "ApaleoAdapter",
    "CustomRESTAdapter",
    "MewsAdapter",
    "ProtelAdapter",
    "IDEMPOTENT_METHODS",
]
