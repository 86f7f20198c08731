"""HTTP retrieval of the Kp source file.

One GET, no retries: the scheduler's next invocation is the retry.
"""

from __future__ import annotations

import httpx

from kpfeed import __version__
from kpfeed.core.exceptions import NetworkError
from kpfeed.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_URL = "https://kp.gfz-potsdam.de/app/files/Kp_ap_nowcast.txt"
DEFAULT_TIMEOUT = 30.0
USER_AGENT = f"kpfeed/{__version__}"


def fetch_text(url: str = DEFAULT_URL, *, timeout: float = DEFAULT_TIMEOUT, client: httpx.Client | None = None) -> str:
    """Download ``url`` and return the decoded body.

    Args:
        url: Source file URL
        timeout: Connect/read timeout in seconds
        client: Pre-configured client; a new one is created and closed when omitted

    Raises:
        NetworkError: On connection failure, timeout or a non-2xx status
    """
    owns_client = client is None
    if client is None:
        client = httpx.Client(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    logger.info("Downloading Kp file", url=url)
    try:
        response = client.get(url)
        response.raise_for_status()
    except httpx.TimeoutException as exc:
        raise NetworkError(f"Timed out downloading '{url}': {exc}", url) from exc
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise NetworkError(f"Download of '{url}' failed with HTTP {status}", url, status_code=status) from exc
    except httpx.HTTPError as exc:
        raise NetworkError(f"Error while downloading '{url}': {exc}", url) from exc
    finally:
        if owns_client:
            client.close()

    logger.debug("Downloaded Kp file", url=url, status_code=response.status_code, size=len(response.content))
    return response.text
