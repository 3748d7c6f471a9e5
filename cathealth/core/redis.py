# cathealth/core/redis.py

import os
import logging
import redis
from dotenv import load_dotenv

load_dotenv()
logger = logging.getLogger(__name__)

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Connections are opened lazily on the first command
redis_client = redis.Redis.from_url(REDIS_URL, decode_responses=True, socket_timeout=5)
