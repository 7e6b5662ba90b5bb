import openai

from ocra.config import Config


CONFIG = Config()


def openai_client_factory(
    token: str | None = None,
    *,
    timeout: float | None = None,
) -> openai.AsyncClient:
    token = CONFIG.openai_api_key if token is None else token
    timeout = CONFIG.llm_timeout if timeout is None else timeout
    # Without a token the client falls back to OPENAI_API_KEY and raises if unset.
    return openai.AsyncClient(api_key=token, timeout=timeout, max_retries=0)
