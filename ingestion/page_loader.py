from __future__ import annotations

import httpx

DEFAULT_TIMEOUT = 10.0
DEFAULT_UA = "sortguide/0.1 (+dataset-loader)"


async def fetch_url(
    url: str, *, timeout: float = DEFAULT_TIMEOUT, user_agent: str = DEFAULT_UA
) -> tuple[int, str, str | None]:
    """
    Fetch a data asset and return (status_code, text, content_type).

    Used for the items CSV and the bins config when they are served remotely.
    """
    headers = {"User-Agent": user_agent, "Accept": "text/csv, application/json, */*"}
    async with httpx.AsyncClient(follow_redirects=True, timeout=timeout, headers=headers) as client:
        resp = await client.get(url)
        ctype = resp.headers.get("content-type")
        return resp.status_code, resp.text, ctype
