"""
OpenSearch client wrapper for the memory document index.
"""

from typing import Any, Dict, List, Optional

import boto3
from opensearchpy import OpenSearch, RequestsHttpConnection
from opensearchpy.exceptions import NotFoundError, OpenSearchException
from requests_aws4auth import AWS4Auth

from .config import OpenSearchConfig
from .logging_config import get_logger

logger = get_logger(__name__)

MEMORY_INDEX_BODY = {
    'mappings': {
        'properties': {
            'id': {
                'type': 'keyword'
            },
            'entity': {
                'type': 'keyword'
            },
            'entityType': {
                'type': 'keyword'
            },
            'memoryType': {
                'type': 'keyword'
            },
            'content': {
                'type': 'text'
            },
            'timestamp': {
                'type': 'date'
            },
            'importance': {
                'type': 'float'
            },
            'tags': {
                'type': 'keyword'
            },
            'indexed_at': {
                'type': 'long'
            }
        }
    }
}


class OpenSearchError(Exception):
    """Custom exception for OpenSearch errors."""
    pass


class OpenSearchClient:
    """OpenSearch client with optional AWS authentication and error handling."""

    def __init__(self, config: OpenSearchConfig, client: Optional[OpenSearch] = None):
        """
        Initialize OpenSearch client.

        Args:
            config: OpenSearchConfig instance with connection parameters
            client: Pre-built opensearch-py client (skips connection setup)
        """
        self.config = config
        self.index_name = config.index_name

        if client is not None:
            self.client = client
            return

        http_auth = None
        if config.auth == 'aws':
            credentials = boto3.Session().get_credentials()
            http_auth = AWS4Auth(region=config.region, service='aoss', refreshable_credentials=credentials)

        endpoint = config.endpoint
        if '://' in endpoint:
            # Remove protocol if present
            endpoint = endpoint.split('://', 1)[1]

        self.client = OpenSearch(hosts=[{
            'host': endpoint,
            'port': config.port
        }],
                                 http_auth=http_auth,
                                 use_ssl=config.use_ssl,
                                 verify_certs=config.use_ssl,
                                 connection_class=RequestsHttpConnection)

        logger.info(f'Initialized OpenSearch client for endpoint: {config.endpoint}')

    def create_index_if_not_exists(self, index_name: Optional[str] = None) -> str:
        """
        Create the memory index if it doesn't exist.

        Args:
            index_name: Name of the index (uses config default if None)

        Returns:
            'exists', 'created' or 'failed'

        Raises:
            OpenSearchError: If the index cannot be checked or created
        """
        index_name = index_name or self.index_name

        try:
            if self.client.indices.exists(index=index_name):
                logger.debug(f'Index {index_name} already exists')
                return 'exists'

            response = self.client.indices.create(index=index_name, body=MEMORY_INDEX_BODY)
            if response.get('acknowledged', False):
                logger.info(f'Created index {index_name}')
                return 'created'
            logger.warning(f'Index creation for {index_name} was not acknowledged')
            return 'failed'
        except OpenSearchException as e:
            logger.error(f'Error creating index {index_name}: {e}')
            raise OpenSearchError(f'Failed to create index: {e}') from e
        except Exception as e:
            logger.error(f'Unexpected error creating index {index_name}: {e}')
            raise OpenSearchError(f'Unexpected error creating index: {e}') from e

    def index_document(self,
                       document: Dict[str, Any],
                       doc_id: Optional[str] = None,
                       index_name: Optional[str] = None,
                       refresh: Optional[str] = 'wait_for') -> bool:
        """
        Index a document in OpenSearch.

        Args:
            document: Document to index
            doc_id: Document ID (OpenSearch assigns one if None)
            index_name: Name of the index (uses config default if None)
            refresh: Refresh policy; 'wait_for' makes the document visible to the next search

        Returns:
            True if indexing was successful, False otherwise

        Raises:
            OpenSearchError: If the request fails
        """
        index_name = index_name or self.index_name

        try:
            response = self.client.index(index=index_name, body=document, id=doc_id, refresh=refresh)

            success = response.get('result') in ['created', 'updated']
            if success:
                logger.debug(f'Indexed document {doc_id} in {index_name}')
            else:
                logger.warning(f'Unexpected result indexing document: {response}')

            return success

        except OpenSearchException as e:
            logger.error(f'Error indexing document: {e}')
            raise OpenSearchError(f'Failed to index document: {e}') from e
        except Exception as e:
            logger.error(f'Unexpected error indexing document: {e}')
            raise OpenSearchError(f'Unexpected error indexing document: {e}') from e

    def list_documents(self,
                       sort: Optional[List[Dict[str, Any]]] = None,
                       page_size: int = 1000,
                       index_name: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Return every document in the index.

        With a sort clause, results are paged with ``search_after`` on the sort keys
        so indices larger than one page are read completely. Without one, a single
        page is returned.

        Args:
            sort: OpenSearch sort clause; should end with a unique key
            page_size: Number of documents fetched per request
            index_name: Name of the index (uses config default if None)

        Returns:
            List of document sources, in sort order

        Raises:
            OpenSearchError: If a search fails or returns an unexpected response
        """
        index_name = index_name or self.index_name

        documents: List[Dict[str, Any]] = []
        search_after = None
        while True:
            search_body: Dict[str, Any] = {'size': page_size, 'query': {'match_all': {}}}
            if sort:
                search_body['sort'] = sort
            if search_after is not None:
                search_body['search_after'] = search_after

            try:
                response = self.client.search(index=index_name, body=search_body)
                hits = response['hits']['hits']
                documents.extend(hit['_source'] for hit in hits)
                if not sort or len(hits) < page_size:
                    break
                search_after = hits[-1]['sort']
            except NotFoundError:
                logger.warning(f'Index {index_name} does not exist yet')
                return []
            except OpenSearchException as e:
                logger.error(f'Error listing documents in {index_name}: {e}')
                raise OpenSearchError(f'Failed to list documents: {e}') from e
            except (KeyError, TypeError, IndexError) as e:
                logger.error(f'Malformed search response from {index_name}: {e!r}')
                raise OpenSearchError(f'Malformed search response: {e!r}') from e
            except Exception as e:
                logger.error(f'Unexpected error listing documents in {index_name}: {e}')
                raise OpenSearchError(f'Unexpected error listing documents: {e}') from e

        logger.debug(f'Listed {len(documents)} documents from {index_name}')
        return documents

    def close(self) -> None:
        """Close the underlying transport connections."""
        try:
            self.client.close()
        except Exception as e:
            logger.warning(f'Error closing OpenSearch client: {e}')

    def health_check(self) -> bool:
        """
        Perform a health check on the OpenSearch service.

        Returns:
            True if service is healthy, False otherwise
        """
        try:
            response = self.client.indices.exists(index=self.index_name)

            return response in [True, False]

        except Exception as e:
            logger.error(f'OpenSearch health check failed: {e}')
            return False
