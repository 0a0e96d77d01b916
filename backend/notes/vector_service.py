import logging
import threading
import time
from typing import List

from django.conf import settings
from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PayloadSchemaType,
    PointStruct,
    VectorParams,
)

from .exceptions import VectorStoreError
from .interfaces import VectorHit

logger = logging.getLogger(__name__)

# Payload keys every stored vector carries
CHUNK_ID_KEY = "chunk_id"
NOTE_ID_KEY = "note_id"


class VectorService:
    """Chunk embeddings in Qdrant, tagged with their chunk id and note id"""

    def __init__(self):
        self.client = None
        self._connected = False
        self._last_connection_attempt = 0
        self._connect_lock = threading.Lock()

    @property
    def collection_name(self) -> str:
        return getattr(settings, "QDRANT_COLLECTION_NAME", "notes_embeddings")

    def _connect(self):
        """
        Initialize Qdrant client connection.
        Returns True if successful, False otherwise.
        """
        try:
            host = getattr(settings, "QDRANT_HOST", "localhost")
            port = getattr(settings, "QDRANT_PORT", 6333)
            api_key = getattr(settings, "QDRANT_API_KEY", None)

            if api_key:
                self.client = QdrantClient(host=host, port=port, api_key=api_key)
            else:
                self.client = QdrantClient(host=host, port=port)

            logger.info("Connected to Qdrant at %s:%s", host, port)
            self._ensure_collection()
            self._connected = True
            return True

        except Exception as e:
            logger.warning("Failed to connect to Qdrant: %s", e)
            self._connected = False
            return False

    def _ensure_connection(self, max_retries: int = 3, retry_delay: float = 1.0):
        """
        Ensure connection to Qdrant is established with retry logic.

        Raises:
            VectorStoreError if connection cannot be established after retries
        """
        if self._connected and self.client is not None:
            return True

        # Workers and request threads share this instance
        with self._connect_lock:
            if self._connected and self.client is not None:
                return True

            # Avoid hammering the server with connection attempts
            current_time = time.time()
            if current_time - self._last_connection_attempt < 5:
                raise VectorStoreError("Qdrant connection unavailable (recent connection attempt failed)")

            self._last_connection_attempt = current_time

            for attempt in range(max_retries):
                if attempt > 0:
                    sleep_time = retry_delay * (2 ** (attempt - 1))
                    logger.info("Retrying Qdrant connection in %.2f seconds...", sleep_time)
                    time.sleep(sleep_time)

                logger.info("Attempting to connect to Qdrant (attempt %d/%d)", attempt + 1, max_retries)
                if self._connect():
                    return True

            error_msg = f"Failed to connect to Qdrant after {max_retries} attempts"
            logger.error(error_msg)
            raise VectorStoreError(error_msg)

    def _ensure_collection(self):
        """Create collection if it doesn't exist"""
        try:
            collections = self.client.get_collections().collections
            collection_names = [c.name for c in collections]

            if self.collection_name not in collection_names:
                logger.info("Creating Qdrant collection: %s", self.collection_name)
                self.client.create_collection(
                    collection_name=self.collection_name,
                    vectors_config=VectorParams(
                        size=getattr(settings, "EMBEDDING_DIM", 768),
                        distance=Distance.COSINE,
                    ),
                )
                # Delete-by-note filters on this key
                self.client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=NOTE_ID_KEY,
                    field_schema=PayloadSchemaType.KEYWORD,
                )
                logger.info("Collection %s created successfully", self.collection_name)
            else:
                logger.debug("Collection %s already exists", self.collection_name)

        except Exception as e:
            logger.error("Failed to ensure collection exists: %s", e)
            raise

    @staticmethod
    def _note_filter(note_id: str) -> Filter:
        return Filter(
            must=[FieldCondition(key=NOTE_ID_KEY, match=MatchValue(value=str(note_id)))]
        )

    def upsert(self, vector_id: str, note_id: str, chunk_id: str, vector: List[float]) -> None:
        """
        Store a chunk embedding

        Args:
            vector_id: Point id (the chunk UUID)
            note_id: UUID of the owning note
            chunk_id: UUID of the owning chunk
            vector: Embedding vector
        """
        self._ensure_connection()

        try:
            point = PointStruct(
                id=str(vector_id),
                vector=vector,
                payload={
                    CHUNK_ID_KEY: str(chunk_id),
                    NOTE_ID_KEY: str(note_id),
                },
            )
            self.client.upsert(collection_name=self.collection_name, points=[point])

            logger.debug("Stored embedding for chunk %s of note %s", chunk_id, note_id)

        except Exception as e:
            logger.error("Failed to store embedding for chunk %s: %s", chunk_id, e)
            raise VectorStoreError(f"Failed to store embedding: {e}") from e

    def search(self, vector: List[float], top_k: int) -> List[VectorHit]:
        """
        Nearest chunk vectors, best first

        Args:
            vector: Query vector
            top_k: Maximum number of hits

        Returns:
            List of VectorHit(chunk_id, note_id, score)
        """
        self._ensure_connection()

        try:
            response = self.client.query_points(
                collection_name=self.collection_name,
                query=vector,
                limit=top_k,
                with_payload=True,
            )
        except Exception as e:
            logger.error("Failed to search similar embeddings: %s", e)
            raise VectorStoreError(f"Vector search failed: {e}") from e

        hits = []
        for point in response.points:
            payload = point.payload or {}
            if NOTE_ID_KEY not in payload:
                logger.warning("Skipping vector %s without note_id payload", point.id)
                continue
            hits.append(
                VectorHit(
                    chunk_id=str(payload.get(CHUNK_ID_KEY, "")),
                    note_id=str(payload[NOTE_ID_KEY]),
                    score=float(point.score),
                )
            )

        logger.debug("Found %d similar embeddings (top_k=%d)", len(hits), top_k)
        return hits

    def delete_by_note(self, note_id: str) -> None:
        """Delete every embedding belonging to a note"""
        self._ensure_connection()

        try:
            self.client.delete(
                collection_name=self.collection_name,
                points_selector=FilterSelector(filter=self._note_filter(note_id)),
            )
            logger.info("Deleted embeddings for note %s", note_id)

        except Exception as e:
            logger.error("Failed to delete embeddings for note %s: %s", note_id, e)
            raise VectorStoreError(f"Failed to delete embeddings: {e}") from e

    def health_check(self) -> bool:
        """Check if Qdrant is healthy"""
        try:
            self._ensure_connection()
            self.client.get_collections()
            return True
        except Exception as e:
            logger.error("Qdrant health check failed: %s", e)
            return False


# Global instance
vector_service = VectorService()
