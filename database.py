from motor.motor_asyncio import AsyncIOMotorClient
from logging_config import get_logger
from config import config
import certifi

logger = get_logger("database")

uri = config.MONGO_URI

if uri:
    logger.info(f"MongoDB connection string found: {uri[:20]}...")
else:
    logger.error("MONGO_URI not found in configuration!")

class DatabaseProxy:
    def __init__(self):
        self._client = None

    def initialize(self):
        if self._client is None:
            if config.ENV == "production":
                self._client = AsyncIOMotorClient(uri, tlsCAFile=certifi.where())
            else:
                self._client = AsyncIOMotorClient(uri, tlsAllowInvalidCertificates=True)
            logger.info(f"Database client initialized on DB: {config.DB_NAME}")

    def reset(self):
        if self._client is not None:
            self._client.close()
            self._client = None

    def __getattr__(self, name):
        self.initialize()
        return getattr(self._client, name)

    def __getitem__(self, name):
        self.initialize()
        return self._client[name]


client = DatabaseProxy()

class DBProxy:
    """Resolves collections lazily so the client is only created on first use."""

    def get_collection(self, name):
        return client[config.DB_NAME][name]

    def __getattr__(self, attr):
        return client[config.DB_NAME][attr]

    def __getitem__(self, key):
        return client[config.DB_NAME][key]

db = DBProxy()
