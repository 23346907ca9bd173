import asyncio
import logging

import aiohttp

from tripsearch.core.config import settings
from tripsearch.core.errors import SemanticParseError, SemanticParserUnavailable

logger = logging.getLogger(__name__)


class RemoteLLMClient:
    def __init__(self, api_url: str = None):
        self.api_url = settings.LLM_API_URL if api_url is None else api_url

    async def generate(
        self, prompt: str, system_prompt: str = "You are a helpful assistant."
    ) -> str:
        if not self.api_url:
            raise SemanticParserUnavailable("LLM_API_URL is not configured")

        payload = {
            "prompt": prompt,
            "system_prompt": system_prompt,
            "max_tokens": settings.LLM_MAX_TOKENS,
            "temperature": settings.LLM_TEMPERATURE,
        }
        timeout = aiohttp.ClientTimeout(total=settings.LLM_TIMEOUT)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.api_url, json=payload) as resp:
                    if resp.status != 200:
                        error_text = await resp.text()
                        logger.warning(f"LLM Service Error: {resp.status} - {error_text}")
                        raise SemanticParseError(f"LLM service returned {resp.status}")
                    data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Failed to connect to LLM Service: {e}")
            raise SemanticParseError(str(e)) from e

        return data.get("response", "")


remote_llm = RemoteLLMClient()
