import asyncio
import ipaddress
import logging
import socket
from typing import List, Optional

import httpx
from bs4 import BeautifulSoup

from .errors import ValidationError

logger = logging.getLogger(__name__)

MAX_LISTING_CHARS = 20000
# raw page bytes read before stripping markup
MAX_PAGE_BYTES = MAX_LISTING_CHARS * 4
MAX_REDIRECTS = 5

USER_AGENT = "Mozilla/5.0 (compatible; Kryptohire/1.0)"


def html_to_text(html: str) -> str:
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style", "noscript", "nav", "footer", "header"]):
        tag.decompose()
    # try common content containers, else all text
    cont = soup.select_one("div#content, .content, .job, .job-description, main, article") or soup
    return cont.get_text(separator=" ", strip=True)


async def resolve_addresses(host: str, port: int) -> List[str]:
    infos = await asyncio.get_running_loop().getaddrinfo(host, port, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


def is_public_address(value: str) -> bool:
    try:
        ip = ipaddress.ip_address(value.split("%", 1)[0])
    except ValueError:
        return False
    return not (ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_multicast
                or ip.is_reserved or ip.is_unspecified)


async def check_public_url(url: httpx.URL) -> None:
    """Reject URLs that are not http(s) or whose host resolves to a non-public address."""
    if url.scheme not in ("http", "https") or not url.host:
        raise ValidationError("Job URL must start with http:// or https://", {"url": str(url)})
    port = url.port or (443 if url.scheme == "https" else 80)
    try:
        addresses = await resolve_addresses(url.host, port)
    except (socket.gaierror, UnicodeError) as e:
        logger.error(f"Failed to resolve job listing host {url.host}: {e}")
        raise ValidationError("Could not resolve the job listing host", {"url": str(url)}) from e
    if not addresses or not all(is_public_address(a) for a in addresses):
        logger.warning(f"Refusing job listing URL {url} (resolves to {addresses})")
        raise ValidationError("Job URL must point to a public address", {"url": str(url)})


def _decode(body: bytes, charset: Optional[str]) -> str:
    try:
        return body.decode(charset or "utf-8", errors="ignore")
    except LookupError:
        return body.decode("utf-8", errors="ignore")


async def fetch_job_listing(url: str) -> str:
    """Fetch a job posting page and return its visible text."""
    if not url.lower().startswith(("http://", "https://")):
        raise ValidationError("Job URL must start with http:// or https://", {"url": url})
    try:
        target = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ValidationError("Job URL is not valid", {"url": url}) from e

    try:
        # redirects are followed by hand so every hop is checked
        async with httpx.AsyncClient(timeout=20.0, follow_redirects=False) as client:
            for _ in range(MAX_REDIRECTS + 1):
                await check_public_url(target)
                async with client.stream("GET", target, headers={"User-Agent": USER_AGENT}) as r:
                    if r.is_redirect:
                        target = r.url.join(r.headers["location"])
                        continue
                    r.raise_for_status()
                    body = bytearray()
                    async for chunk in r.aiter_bytes():
                        body.extend(chunk)
                        if len(body) >= MAX_PAGE_BYTES:
                            break
                    html = _decode(bytes(body[:MAX_PAGE_BYTES]), r.charset_encoding)
                    break
            else:
                raise ValidationError("Job URL redirected too many times", {"url": url})
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch job listing {url}: {e}")
        raise ValidationError("Could not fetch the job listing URL", {"url": url}) from e

    text = html_to_text(html)
    if not text:
        raise ValidationError("The job listing page has no readable text", {"url": url})
    return text[:MAX_LISTING_CHARS]
