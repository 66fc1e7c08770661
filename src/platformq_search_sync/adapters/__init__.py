"""Index client adapters"""

from .base import IndexClient
from .elasticsearch import ElasticsearchIndexClient

__all__ = [
    'IndexClient',
    'ElasticsearchIndexClient'
]
