import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Elasticsearch
    ES_HOST = os.getenv("ES_HOST", "http://localhost:9200")
    ES_ACTIVITIES_INDEX = os.getenv("ES_ACTIVITIES_INDEX", "activities")
    ES_PLACES_INDEX = os.getenv("ES_PLACES_INDEX", "places")
    ES_QUERY_LOG_INDEX = os.getenv("ES_QUERY_LOG_INDEX", "search_queries")
    ES_PING_TIMEOUT = float(os.getenv("ES_PING_TIMEOUT", "5.0"))
    ES_REQUEST_TIMEOUT = float(os.getenv("ES_REQUEST_TIMEOUT", "10.0"))

    # Semantic parser (LLM). Empty URL disables it.
    LLM_API_URL = os.getenv("LLM_API_URL", "")
    LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "512"))
    LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.2"))
    LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "3.0"))

    # Parsing
    DEFAULT_LOCATION_RADIUS_KM = float(os.getenv("DEFAULT_LOCATION_RADIUS_KM", "50"))
    MAX_QUERY_LENGTH = int(os.getenv("MAX_QUERY_LENGTH", "500"))

    # Search Application
    APP_HOST = os.getenv("APP_HOST", "127.0.0.1")
    APP_PORT = int(os.getenv("APP_PORT", "8000"))
    SEARCH_DEFAULT_LIMIT = int(os.getenv("SEARCH_DEFAULT_LIMIT", "20"))
    SEARCH_MAX_LIMIT = int(os.getenv("SEARCH_MAX_LIMIT", "100"))


settings = Settings()
