"""Link extraction for the site crawler."""

from typing import List, Optional, Tuple
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

SKIPPED_SCHEMES = ("javascript:", "mailto:", "tel:", "data:")
GITHUB_HOSTS = {"github.com", "www.github.com"}


def normalize_url(url: str) -> str:
    """Drop the fragment; it never identifies a distinct page."""
    return urldefrag(url)[0]


def is_same_site(url: str, root_url: str) -> bool:
    return urlparse(url).netloc.lower() == urlparse(root_url).netloc.lower()


def extract_links(html: str, base_url: str) -> List[str]:
    """Absolute http(s) links from anchors, in document order, without duplicates."""
    soup = BeautifulSoup(html, "html.parser")
    links: List[str] = []
    seen = set()

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.startswith("#") or href.lower().startswith(SKIPPED_SCHEMES):
            continue

        absolute = normalize_url(urljoin(base_url, href))
        if urlparse(absolute).scheme not in ("http", "https"):
            continue

        if absolute not in seen:
            seen.add(absolute)
            links.append(absolute)

    return links


def parse_repository_url(url: str) -> Optional[Tuple[str, str]]:
    """Owner and name from a GitHub repository URL, if it is one."""
    parsed = urlparse(url)
    if parsed.netloc.lower() not in GITHUB_HOSTS:
        return None
    parts = [part for part in parsed.path.split("/") if part]
    if len(parts) < 2:
        return None
    name = parts[1][:-4] if parts[1].endswith(".git") else parts[1]
    return parts[0], name


def extract_repository_links(html: str, base_url: Optional[str] = None) -> List[str]:
    """Repository root URLs referenced by the page.

    Links into a file or directory view (``/blob/``, ``/tree/``) are ignored.
    """
    soup = BeautifulSoup(html, "html.parser")
    repositories: List[str] = []

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if "github.com/" not in href or "/blob/" in href or "/tree/" in href:
            continue

        coordinates = parse_repository_url(urljoin(base_url or "", href))
        if coordinates is None:
            continue

        repo_url = f"https://github.com/{coordinates[0]}/{coordinates[1]}"
        if repo_url not in repositories:
            repositories.append(repo_url)

    return repositories
