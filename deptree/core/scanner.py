import httpx
import asyncio
import logging
from typing import Dict, Iterable, Optional, Tuple

from deptree.core.errors import DescriptionError
from deptree.core.model import DependencyNode

GITHUB_API_URL = "https://api.github.com"
GITHUB_HOST = "github.com/"
USER_AGENT = "deptree-cli"
REQUEST_TIMEOUT = 10.0


def extract_github_repo(module: str) -> Optional[Tuple[str, str]]:
    path = module.split("@", 1)[0]

    if not path.startswith(GITHUB_HOST):
        return None

    # Subpackages share the repository of their module
    path_parts = path[len(GITHUB_HOST):].split("/")
    if len(path_parts) < 2 or not path_parts[0] or not path_parts[1]:
        return None

    return path_parts[0], path_parts[1]


async def fetch_github_description(client, module, api_url=GITHUB_API_URL):
    repo = extract_github_repo(module)
    if repo is None:
        raise DescriptionError("not a GitHub module")

    owner, name = repo
    url = f"{api_url.rstrip('/')}/repos/{owner}/{name}"

    try:
        response = await client.get(url)
    except httpx.HTTPError as e:
        raise DescriptionError(f"failed to fetch from GitHub API: {e}") from e

    if response.status_code != 200:
        raise DescriptionError(f"GitHub API returned status {response.status_code}")

    try:
        data = response.json()
    except ValueError as e:
        raise DescriptionError(f"failed to parse response: {e}") from e

    description = data.get("description") if isinstance(data, dict) else None
    if not isinstance(description, str) or not description:
        raise DescriptionError("no description set")

    return description


async def describe_module(client, module, api_url=GITHUB_API_URL, limit=None,
                          timeout=REQUEST_TIMEOUT):
    """Returns the description of ``module``, or the failure reason in parentheses."""
    try:
        if limit is None:
            return await _fetch_within(client, module, api_url, timeout)
        async with limit:
            return await _fetch_within(client, module, api_url, timeout)
    except DescriptionError as e:
        logging.debug(f"No description for {module}: {e}")
        return f"({e})"


async def _fetch_within(client, module, api_url, timeout):
    # httpx timeouts apply per phase; this bounds the whole lookup
    try:
        return await asyncio.wait_for(fetch_github_description(client, module, api_url), timeout)
    except asyncio.TimeoutError as e:
        raise DescriptionError("failed to fetch from GitHub API: timeout") from e


def build_client(token: str = "", timeout: float = REQUEST_TIMEOUT,
                 user_agent: str = USER_AGENT, transport=None) -> httpx.AsyncClient:
    headers = {"User-Agent": user_agent}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    limits = httpx.Limits(max_keepalive_connections=20, max_connections=None)
    return httpx.AsyncClient(timeout=timeout, headers=headers, limits=limits, transport=transport)


async def describe_modules(
    modules: Iterable[str],
    token: str = "",
    timeout: float = REQUEST_TIMEOUT,
    api_url: str = GITHUB_API_URL,
    user_agent: str = USER_AGENT,
    max_concurrency: Optional[int] = None,
    transport=None,
) -> Dict[str, str]:
    """
    Fetches one description per distinct module, all lookups in flight at once.

    Every lookup finishes (with a description or a placeholder) before this
    returns; a failed lookup never affects the others and is not retried.
    """
    names = list(dict.fromkeys(modules))
    if not names: return {}

    logging.info(f"Fetching descriptions for {len(names)} modules...")

    limit = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async with build_client(token, timeout, user_agent, transport) as client:
        tasks = [describe_module(client, name, api_url, limit, timeout) for name in names]
        results = await asyncio.gather(*tasks)

    return dict(zip(names, results))


def enrich_tree(node: DependencyNode, descriptions: Dict[str, str]) -> None:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.name in descriptions:
            current.description = descriptions[current.name]
        stack.extend(current.children.values())
