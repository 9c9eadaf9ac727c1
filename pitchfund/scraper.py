# pitchfund/scraper.py
import json
import logging
import re
from datetime import datetime
from typing import Iterator, List, Optional
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from pydantic import BaseModel

from pitchfund import config

logger = logging.getLogger(__name__)

INVALID_URL = "Invalid URL format"
NOT_LINKEDIN = "URL must be a LinkedIn company page"
NOT_PODCAST = "URL must be from thepitch.show"
NO_LOGO = "No company logo found on LinkedIn page"
NOT_AN_IMAGE = "Found logo element but URL does not appear to be a valid image"
NO_DATE = "No publish date found on this page"
NO_TRANSCRIPT = "No transcript content found on the page"

PODCAST_HOST = "thepitch.show"

LOGO_SELECTORS = [
    ".org-top-card-primary-content__logo img",
    ".org-company-logo img",
    ".organization-outlet__logo img",
    ".org-outlet__logo img",
    ".top-card-layout__entity-image img",
    '[data-test-id="company-logo"] img',
    ".org-top-card__logo img",
    'img[alt*="logo" i]',
    'img[src*="company-logo" i]',
    'img[src*="organization-logo" i]',
]

DATE_META_SELECTORS = [
    'meta[property="article:published_time"]',
    'meta[name="article:published_time"]',
    'meta[property="datePublished"]',
    'meta[name="datePublished"]',
    'meta[property="og:article:published_time"]',
    'meta[name="publishdate"]',
    'meta[name="publish_date"]',
    'meta[property="article:published"]',
    'meta[name="date"]',
]

DATE_TEXT_PATTERNS = [
    re.compile(r"\b([A-Z][a-z]+\.?\s+\d{1,2},\s+\d{4})"),  # June 18, 2025 / Jun. 18, 2025
    re.compile(r"\b(\d{1,2}/\d{1,2}/\d{4})"),
    re.compile(r"\b(\d{4}-\d{2}-\d{2})"),
    re.compile(r"\b(\d{1,2}-\d{1,2}-\d{4})"),
]

DATE_FORMATS = ["%B %d, %Y", "%b %d, %Y", "%b. %d, %Y", "%m/%d/%Y", "%d-%m-%Y"]

JSON_LD_DATED_TYPES = ("Article", "BlogPosting", "Episode", "PodcastEpisode")

TRANSCRIPT_SELECTORS = [
    "#transcript",
    ".transcript",
    '[id*="transcript"]',
    '[class*="transcript"]',
    'section[aria-label*="transcript" i]',
    "div[data-transcript]",
    ".episode-transcript",
    ".pitch-transcript",
]
TRANSCRIPT_KEYWORDS = ("transcript", "welcome to the pitch", "josh muccio", "today we have")

IMAGE_URL_RE = re.compile(r"\.(jpg|jpeg|png|gif|svg|webp)(\?.*)?$", re.IGNORECASE)


class LinkedInLogoResult(BaseModel):
    success: bool
    logo_url: Optional[str] = None
    logo_resolution: Optional[str] = None
    extraction_method: Optional[str] = None
    error: Optional[str] = None


class EpisodeDateResult(BaseModel):
    success: bool
    publish_date: Optional[str] = None
    original_date: Optional[str] = None
    extraction_method: Optional[str] = None
    error: Optional[str] = None


class EpisodeTranscriptResult(BaseModel):
    success: bool
    transcript: Optional[str] = None
    extraction_method: Optional[str] = None
    error: Optional[str] = None


def _host(url: str) -> Optional[str]:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return parsed.hostname


def fetch_html(url: str, agent: str) -> str:
    headers = {
        "User-Agent": f"Mozilla/5.0 (compatible; The Pitch Fund {agent}/1.0)",
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
    }
    logger.info(f"Fetching {url}")
    response = requests.get(url, headers=headers, timeout=config.REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.text


def _json_ld(soup: BeautifulSoup) -> Iterator[dict]:
    for script in soup.select('script[type="application/ld+json"]'):
        try:
            data = json.loads(script.string or script.get_text() or "{}")
        except ValueError:
            continue
        for item in data if isinstance(data, list) else [data]:
            if isinstance(item, dict):
                yield item


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


# --- LinkedIn logo ------------------------------------------------------------

def best_srcset_entry(srcset: str) -> Optional[tuple]:
    """Pick the highest-resolution candidate; `x` densities count as hundreds of pixels."""
    best = None
    for entry in srcset.split(","):
        parts = entry.strip().split()
        if not parts:
            continue
        resolution = 0
        if len(parts) > 1:
            descriptor = parts[1]
            digits = re.sub(r"[^\d.]", "", descriptor) or "0"
            if descriptor.endswith("w"):
                resolution = int(float(digits))
            elif descriptor.endswith("x"):
                resolution = int(float(digits) * 100)
        if best is None or resolution > best[1]:
            best = (parts[0], resolution)
    return best


def absolutize_logo_url(url: str) -> str:
    if url.startswith("//"):
        return "https:" + url
    if url.startswith("/"):
        return "https://linkedin.com" + url
    return url


def find_logo(soup: BeautifulSoup) -> Optional[tuple]:
    """(url, resolution, method) from the first strategy that yields a candidate."""
    for selector in LOGO_SELECTORS:
        img = soup.select_one(selector)
        if img is None:
            continue
        srcset = img.get("srcset")
        if srcset:
            best = best_srcset_entry(srcset)
            if best:
                return best[0], f"{best[1]}w", f"{selector} (srcset)"
        if img.get("data-src"):
            return img["data-src"], "unknown", f"{selector} (data-src)"
        if img.get("src"):
            return img["src"], "unknown", f"{selector} (src)"

    og = soup.select_one('meta[property="og:image"]')
    if og and og.get("content"):
        return og["content"], "unknown", "Open Graph image"

    for data in _json_ld(soup):
        logo = data.get("logo")
        if isinstance(logo, dict):
            logo = logo.get("url")
        if isinstance(logo, str) and logo:
            return logo, "unknown", "JSON-LD structured data"
    return None


def extract_linkedin_logo(url: str) -> LinkedInLogoResult:
    host = _host(url)
    if host is None:
        return LinkedInLogoResult(success=False, error=INVALID_URL)
    if "linkedin.com" not in host or "/company/" not in url:
        return LinkedInLogoResult(success=False, error=NOT_LINKEDIN)

    try:
        html = fetch_html(url, "LinkedIn Logo Extractor")
        found = find_logo(BeautifulSoup(html, "html.parser"))
    except requests.RequestException as e:
        logger.warning(f"Failed to fetch LinkedIn page {url}: {e}")
        return LinkedInLogoResult(success=False, error=f"Failed to fetch LinkedIn page: {e}")
    except Exception as e:
        logger.exception(f"Logo extraction failed for {url}")
        return LinkedInLogoResult(success=False, error=f"Extraction failed: {e}")

    if found is None:
        return LinkedInLogoResult(success=False, error=NO_LOGO)

    logo_url, resolution, method = found
    logo_url = absolutize_logo_url(logo_url)
    if not IMAGE_URL_RE.search(logo_url) and "media.licdn.com" not in logo_url:
        return LinkedInLogoResult(success=False, error=NOT_AN_IMAGE)

    return LinkedInLogoResult(
        success=True, logo_url=logo_url, logo_resolution=resolution, extraction_method=method,
    )


# --- Episode publish date -----------------------------------------------------

def normalize_date(raw: str) -> Optional[str]:
    """YYYY-MM-DD for any format we recognize, else None."""
    value = raw.strip()
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def find_publish_date(soup: BeautifulSoup) -> Optional[tuple]:
    for data in _json_ld(soup):
        if data.get("@type") in JSON_LD_DATED_TYPES and data.get("datePublished"):
            return str(data["datePublished"]), "JSON-LD structured data"

    for selector in DATE_META_SELECTORS:
        meta = soup.select_one(selector)
        if meta and meta.get("content"):
            return meta["content"], f"Meta tag: {selector}"

    time_el = soup.select_one("time[datetime]")
    if time_el and time_el.get("datetime"):
        return time_el["datetime"], "HTML time element"

    body = soup.body or soup
    text = body.get_text(" ")
    for pattern in DATE_TEXT_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1), "Text pattern matching"
    return None


def _check_podcast_url(url: str) -> Optional[str]:
    host = _host(url)
    if host is None:
        return INVALID_URL
    if PODCAST_HOST not in host:
        return NOT_PODCAST
    return None


def extract_episode_date(url: str) -> EpisodeDateResult:
    problem = _check_podcast_url(url)
    if problem:
        return EpisodeDateResult(success=False, error=problem)

    try:
        html = fetch_html(url, "Episode Date Extractor")
        found = find_publish_date(BeautifulSoup(html, "html.parser"))
    except requests.RequestException as e:
        logger.warning(f"Failed to fetch episode page {url}: {e}")
        return EpisodeDateResult(success=False, error=f"Failed to fetch webpage: {e}")
    except Exception as e:
        logger.exception(f"Date extraction failed for {url}")
        return EpisodeDateResult(success=False, error=f"Extraction failed: {e}")

    if found is None:
        return EpisodeDateResult(success=False, error=NO_DATE)

    original, method = found
    return EpisodeDateResult(
        success=True,
        publish_date=normalize_date(original) or original,
        original_date=original,
        extraction_method=method,
    )


# --- Episode transcript -------------------------------------------------------

def _looks_like_transcript(text: str) -> bool:
    lowered = text.lower()
    return (
        any(k in lowered for k in TRANSCRIPT_KEYWORDS)
        and len(text) > 500
        and text.count(":") > 5
    )


def find_transcript(soup: BeautifulSoup) -> Optional[tuple]:
    for selector in TRANSCRIPT_SELECTORS:
        elements = soup.select(selector)
        if not elements:
            continue
        text = " ".join(el.get_text(" ") for el in elements).strip()
        if len(text) > 100:
            return _collapse(text), f"Found using selector: {selector}"

    candidates: List[str] = [
        el.get_text(" ").strip() for el in soup.find_all(True)
    ]
    candidates = [t for t in candidates if _looks_like_transcript(t)]
    if candidates:
        return _collapse(max(candidates, key=len)), "Found using content pattern matching"
    return None


def extract_episode_transcript(url: str) -> EpisodeTranscriptResult:
    problem = _check_podcast_url(url)
    if problem:
        return EpisodeTranscriptResult(success=False, error=problem)

    transcript_url = url if "#transcript" in url else f"{url}#transcript"
    try:
        html = fetch_html(transcript_url, "Transcript Extractor")
        found = find_transcript(BeautifulSoup(html, "html.parser"))
    except requests.RequestException as e:
        logger.warning(f"Failed to fetch episode page {url}: {e}")
        return EpisodeTranscriptResult(success=False, error=f"Failed to fetch page: {e}")
    except Exception as e:
        logger.exception(f"Transcript extraction failed for {url}")
        return EpisodeTranscriptResult(success=False, error=f"Extraction failed: {e}")

    if found is None or len(found[0]) < 100:
        return EpisodeTranscriptResult(success=False, error=NO_TRANSCRIPT)

    transcript, method = found
    return EpisodeTranscriptResult(success=True, transcript=transcript, extraction_method=method)


# --- URL reachability ---------------------------------------------------------

class UrlCheckResult(BaseModel):
    ok: bool
    status: Optional[int] = None
    final_url: Optional[str] = None
    error: Optional[str] = None


def check_url(url: str) -> UrlCheckResult:
    """HEAD the URL following redirects; servers that refuse HEAD get a GET."""
    if _host(url) is None:
        return UrlCheckResult(ok=False, error=INVALID_URL)

    try:
        response = requests.head(url, allow_redirects=True, timeout=config.REQUEST_TIMEOUT)
        method = "HEAD"
    except requests.RequestException as e:
        logger.info(f"HEAD {url} failed, retrying with GET: {e}")
        try:
            response = requests.get(url, allow_redirects=True, timeout=config.REQUEST_TIMEOUT)
            method = "GET"
        except requests.RequestException as e:
            logger.warning(f"URL check failed for {url}: {e}")
            return UrlCheckResult(ok=False, error="URL validation failed")

    final_url = response.url if response.url and response.url != url else None
    logger.info(f"{method} {url} -> {response.status_code}")
    return UrlCheckResult(ok=response.ok, status=response.status_code, final_url=final_url)


# --- VC guest profiles --------------------------------------------------------

NOT_GUEST_PROFILE = "URL must be a thepitch.show guest profile URL"
NOT_EPISODE = "URL must be a thepitch.show episode URL"

PROFILE_IMAGE_SELECTORS = [
    ".col-md-3.col-sm-4.col-6 img",
    ".rounded-circle img",
    'img[alt*="Profile Photo"]',
]
FALLBACK_IMAGE_SELECTORS = [
    'img[class*="profile"]',
    'img[alt*="profile"]',
    'img[src*="headshot"]',
    'img[src*="photo"]',
    ".profile img",
    ".headshot img",
]
S3_IMAGE_RE = re.compile(
    r"https://s3\.us-west-1\.amazonaws\.com/redwood-labs/showpage/uploads/images/[a-f0-9-]+\.(?:jpg|jpeg|webp)"
)

# column -> icon class on the profile's link row
SOCIAL_LINK_CLASSES = {
    "linkedin_url": "linkedin",
    "twitter_url": "x-twitter",
    "instagram_url": "instagram",
    "tiktok_url": "tiktok",
    "youtube_url": "youtube",
    "website_url": "globe",
    "podcast_url": "podcast",
}

FIRM_FROM_BIO_PATTERNS = [
    re.compile(r"Managing Partner and Founder of ([^,.]+)", re.IGNORECASE),
    re.compile(r"Founder of ([^,.]+)", re.IGNORECASE),
    re.compile(r"Partner at ([^,.]+)", re.IGNORECASE),
]

MAX_BIO_LENGTH = 1000
MAX_FIRM_LENGTH = 50


class VcProfile(BaseModel):
    name: str
    firm_name: Optional[str] = None
    role_title: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    twitter_url: Optional[str] = None
    instagram_url: Optional[str] = None
    tiktok_url: Optional[str] = None
    youtube_url: Optional[str] = None
    website_url: Optional[str] = None
    podcast_url: Optional[str] = None
    thepitch_profile_url: str


class VcProfileResult(BaseModel):
    success: bool
    data: Optional[VcProfile] = None
    error: Optional[str] = None


def split_name_and_firm(text: str) -> tuple:
    """Guest pages title themselves "Name // Firm"."""
    if " // " not in text:
        return text.strip(), ""
    name, firm = text.split(" // ", 1)
    return name.strip(), firm.strip()


def clean_firm_name(firm: str) -> str:
    firm = re.sub(r"\s+-\s.*$", "", firm)
    firm = re.sub(r"\s*\|.*$", "", firm)
    firm = re.sub(r"[<>\"].*$", "", firm)
    firm = re.sub(r"\..*$", "", firm)
    return firm.strip()


def find_role(bio_text: str, name: str) -> Optional[str]:
    patterns = [
        re.compile(re.escape(name) + r".*?is\s+(?:a\s+|the\s+)?([^.]+?)\s+(?:at|with|of)\s", re.IGNORECASE),
        re.compile(r"is\s+(?:a\s+|the\s+)?([^.]+?)(?:\s+(?:at|with|of)\s+|\s+and\s+)", re.IGNORECASE),
        re.compile(r"(?:works?|serves?)\s+as\s+(?:a\s+|the\s+)?([^.]+?)(?:\s+(?:at|with|of)\s+|\s+and\s+)",
                   re.IGNORECASE),
    ]
    if not name:
        patterns = patterns[1:]
    for pattern in patterns:
        match = pattern.search(bio_text)
        if match:
            role = re.sub(r"\s+(?:and|&)\s.*$", "", match.group(1)).strip()
            if role:
                return role
    return None


def find_profile_image(soup: BeautifulSoup) -> Optional[str]:
    for selector in PROFILE_IMAGE_SELECTORS:
        img = soup.select_one(selector)
        if img is None:
            continue
        # the S3 original is the full-resolution headshot
        for attr in ("srcset", "src"):
            match = S3_IMAGE_RE.search(img.get(attr) or "")
            if match:
                return match.group(0)
        if (img.get("src") or "").startswith("http"):
            return img["src"]

    for selector in FALLBACK_IMAGE_SELECTORS:
        img = soup.select_one(selector)
        if img is not None and img.get("src"):
            src = img["src"]
            return src if src.startswith("http") else f"https://{PODCAST_HOST}{src}"
    return None


def parse_vc_profile(soup: BeautifulSoup, profile_url: str) -> VcProfile:
    name, firm = "", ""
    title = soup.title.get_text(strip=True) if soup.title else ""
    if " // " in title:
        name, firm = split_name_and_firm(title)
    if not name:
        h1 = soup.find("h1")
        name, firm = split_name_and_firm(h1.get_text(" ", strip=True) if h1 else "")
    firm = clean_firm_name(firm)

    paragraphs = [_collapse(p.get_text(" ")) for p in soup.find_all("p")]
    bio_text = " ".join(paragraphs)
    bio = next((p for p in paragraphs if len(p) > 50), None)

    if not firm or len(firm) > MAX_FIRM_LENGTH:
        for pattern in FIRM_FROM_BIO_PATTERNS:
            match = pattern.search(bio_text)
            if match:
                firm = match.group(1).strip()
                break

    links = soup.select_one(".testimonial-content")
    social = {}
    for column, icon in SOCIAL_LINK_CLASSES.items():
        anchor = links.select_one(f"a.{icon}") if links else None
        social[column] = anchor.get("href") if anchor else None

    return VcProfile(
        name=name or "Unknown",
        firm_name=firm or None,
        role_title=find_role(bio_text, name),
        bio=bio[:MAX_BIO_LENGTH] if bio else None,
        profile_image_url=find_profile_image(soup),
        thepitch_profile_url=profile_url,
        **social,
    )


def extract_vc_profile(url: str) -> VcProfileResult:
    host = _host(url)
    if host is None:
        return VcProfileResult(success=False, error=INVALID_URL)
    if PODCAST_HOST not in host or "/guests/" not in urlparse(url).path:
        return VcProfileResult(success=False, error=NOT_GUEST_PROFILE)

    try:
        html = fetch_html(url, "VC Profile Scraper")
        profile = parse_vc_profile(BeautifulSoup(html, "html.parser"), url)
    except requests.RequestException as e:
        logger.warning(f"Failed to fetch guest profile {url}: {e}")
        return VcProfileResult(success=False, error=f"Profile scraping failed: {e}")
    except Exception as e:
        logger.exception(f"Profile scraping failed for {url}")
        return VcProfileResult(success=False, error=f"Profile scraping failed: {e}")

    logger.info(f"Scraped guest profile {profile.name} ({profile.firm_name})")
    return VcProfileResult(success=True, data=profile)


# --- Investors featured on an episode -----------------------------------------

EPISODE_NUMBER_RE = re.compile(r"/(\d+)[-\w]")
GUEST_PATH_FIRM_RE = re.compile(r"/guests/[^/]+-([^/]+)/?$")
NAME_FIRM_PATTERNS = [
    re.compile(r"^(.+?)\s*//\s*(.+)$"),
    re.compile(r"^(.+?)\s+-\s+(.+)$"),
    re.compile(r"^(.+?)\s*\|\s*(.+)$"),
]
FEATURING_RE = re.compile(r"featuring\s+investors?\s*([^\n]+)", re.IGNORECASE)
PERSON_NAME_RE = re.compile(r"\b([A-Z][a-z]+\s+[A-Z][a-z]+)\b")
CREDITS_SELECTOR = 'div[class*="credits"], div[class*="investors"], div[class*="guests"]'
MAX_FEATURED_VCS = 10


class FeaturedVc(BaseModel):
    name: str
    firm: str = ""
    profile_url: Optional[str] = None


class EpisodeVcs(BaseModel):
    episode_url: str
    episode_number: str = ""
    episode_season: str = ""
    episode_title: str = ""
    featured_vcs: List[FeaturedVc] = []


class EpisodeVcsResult(BaseModel):
    success: bool
    data: Optional[EpisodeVcs] = None
    error: Optional[str] = None


def find_season(text: str, url: str) -> str:
    for pattern, source in [
        (re.compile(r"Season\s+(\d+)", re.IGNORECASE), text),
        (re.compile(r"season[/-]?(\d+)", re.IGNORECASE), url),
        (re.compile(r"\bS(\d+)E\d+", re.IGNORECASE), text),
    ]:
        match = pattern.search(source)
        if match:
            return match.group(1)
    return ""


def guest_from_link(text: str, href: str) -> FeaturedVc:
    profile_url = href if href.startswith("http") else f"https://{PODCAST_HOST}{href}"
    for pattern in NAME_FIRM_PATTERNS:
        match = pattern.match(text)
        if match:
            return FeaturedVc(name=match.group(1).strip(), firm=match.group(2).strip(), profile_url=profile_url)
    slug = GUEST_PATH_FIRM_RE.search(href)
    return FeaturedVc(name=text, firm=slug.group(1).replace("-", " ") if slug else "", profile_url=profile_url)


def find_featured_vcs(soup: BeautifulSoup) -> List[FeaturedVc]:
    vcs: List[FeaturedVc] = []
    seen = set()
    for anchor in soup.select('a[href*="/guests/"]'):
        text = _collapse(anchor.get_text(" "))
        if not text:
            continue
        vc = guest_from_link(text, anchor["href"])
        if vc.name not in seen:
            seen.add(vc.name)
            vcs.append(vc)
    if vcs:
        return vcs

    featuring = FEATURING_RE.search(soup.get_text("\n"))
    if featuring:
        names = [n.strip() for n in re.split(r"[,&]", featuring.group(1))]
        vcs = [FeaturedVc(name=n) for n in names if len(n) > 2]
        if vcs:
            return vcs

    credits = soup.select_one(CREDITS_SELECTOR)
    if credits:
        for name in PERSON_NAME_RE.findall(credits.get_text(" ")):
            if name not in seen:
                seen.add(name)
                vcs.append(FeaturedVc(name=name))
    return vcs


def parse_episode_vcs(soup: BeautifulSoup, episode_url: str) -> EpisodeVcs:
    number = EPISODE_NUMBER_RE.search(urlparse(episode_url).path)

    h1 = soup.find("h1")
    title = h1.get_text(" ", strip=True) if h1 else ""
    if not title and soup.title:
        title = soup.title.get_text(strip=True).split("|")[0]
    title = re.sub(r"\s+-.*$", "", title).strip()

    return EpisodeVcs(
        episode_url=episode_url,
        episode_number=number.group(1) if number else "",
        episode_season=find_season(soup.get_text(" "), episode_url),
        episode_title=title,
        featured_vcs=find_featured_vcs(soup)[:MAX_FEATURED_VCS],
    )


def extract_episode_vcs(url: str) -> EpisodeVcsResult:
    host = _host(url)
    if host is None:
        return EpisodeVcsResult(success=False, error=INVALID_URL)
    if PODCAST_HOST not in host or not EPISODE_NUMBER_RE.search(urlparse(url).path):
        return EpisodeVcsResult(success=False, error=NOT_EPISODE)

    try:
        html = fetch_html(url, "Episode VCs Scraper")
        episode = parse_episode_vcs(BeautifulSoup(html, "html.parser"), url)
    except requests.RequestException as e:
        logger.warning(f"Failed to fetch episode page {url}: {e}")
        return EpisodeVcsResult(success=False, error=f"Episode VCs scraping failed: {e}")
    except Exception as e:
        logger.exception(f"Episode VCs scraping failed for {url}")
        return EpisodeVcsResult(success=False, error=f"Episode VCs scraping failed: {e}")

    logger.info(f"Found {len(episode.featured_vcs)} investors on episode {episode.episode_number}")
    return EpisodeVcsResult(success=True, data=episode)
