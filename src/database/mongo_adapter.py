"""
MongoDB adapter for the file groups store.
Owns the client connection, the groups collection and the GridFS bucket for blobs.
"""

import logging
from typing import Optional

import gridfs
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, PyMongoError

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_NAME = 'file_groups'
DEFAULT_BUCKET_NAME = 'files'
DEFAULT_GROUPS_COLLECTION = 'groups'


class MongoAdapter:
    """Explicitly constructed storage handle, injected into the services"""

    def __init__(
        self,
        connection_string: Optional[str] = None,
        database_name: Optional[str] = None,
        bucket_name: str = DEFAULT_BUCKET_NAME,
        groups_collection: str = DEFAULT_GROUPS_COLLECTION,
        client: Optional[MongoClient] = None,
    ):
        if client is None and not connection_string:
            raise ValueError("MongoDB connection string required. Set MONGODB_URI or pass connection_string")

        self.connection_string = connection_string
        self.database_name = database_name or self._database_from_uri(connection_string)
        self.bucket_name = bucket_name
        self.groups_collection_name = groups_collection

        self.client = client
        self.db: Optional[Database] = None
        self._bucket: Optional[gridfs.GridFSBucket] = None
        self._connect()

    @staticmethod
    def _database_from_uri(connection_string: Optional[str]) -> str:
        """Extract the database name from the URI path, falling back to the default"""
        if not connection_string or '://' not in connection_string:
            return DEFAULT_DATABASE_NAME
        path = connection_string.split('://', 1)[1]
        if '/' not in path:
            return DEFAULT_DATABASE_NAME
        db_name = path.split('/', 1)[1].split('?')[0]
        return db_name or DEFAULT_DATABASE_NAME

    def _connect(self) -> None:
        """Establish MongoDB connection"""
        try:
            if self.client is None:
                self.client = MongoClient(self.connection_string)
            self.db = self.client[self.database_name]
            logger.info(f"Using MongoDB database: {self.database_name}")
        except ConnectionFailure as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    @property
    def groups(self) -> Collection:
        return self.db[self.groups_collection_name]

    @property
    def bucket(self) -> gridfs.GridFSBucket:
        """GridFS bucket holding the blobs, created lazily"""
        if self._bucket is None:
            self._bucket = gridfs.GridFSBucket(self.db, bucket_name=self.bucket_name)
        return self._bucket

    def ping(self) -> bool:
        """Round trip to the server"""
        try:
            self.client.admin.command('ping')
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    def init_collections(self) -> None:
        """Create the indexes the group lookups rely on"""
        try:
            groups = self.groups
            groups.create_index([("id", ASCENDING)], unique=True)
            # Names are an alternate lookup key, duplicates are allowed
            groups.create_index([("name", ASCENDING)])
            logger.info("MongoDB collections and indexes initialized successfully")
        except PyMongoError as e:
            logger.error(f"Error initializing MongoDB collections: {e}")
            raise

    def close(self) -> None:
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed")


def get_mongo_adapter(settings=None) -> MongoAdapter:
    """Build an adapter from application settings"""
    if settings is None:
        from file_groups.config.settings import get_settings
        settings = get_settings()

    return MongoAdapter(
        connection_string=settings.mongodb_uri,
        database_name=settings.mongodb_database,
        bucket_name=settings.files_bucket_name,
        groups_collection=settings.groups_collection,
    )
