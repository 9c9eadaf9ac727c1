# pitchfund/extract.py
import asyncio
import logging
import uuid

from fastapi import APIRouter, HTTPException

from pitchfund import scraper

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_STATUS = {
    scraper.INVALID_URL: 400,
    scraper.NOT_LINKEDIN: 400,
    scraper.NOT_PODCAST: 400,
    scraper.NOT_GUEST_PROFILE: 400,
    scraper.NOT_EPISODE: 400,
    scraper.NO_LOGO: 404,
    scraper.NO_DATE: 404,
    scraper.NO_TRANSCRIPT: 404,
}


def _session_id() -> str:
    return uuid.uuid4().hex[:8]


def _require_url(url: str, message: str = "URL parameter is required") -> str:
    url = (url or "").strip() if isinstance(url, str) else ""
    if not url:
        raise HTTPException(status_code=400, detail=message)
    return url


def _raise_for(result, sid: str):
    if result.success:
        return
    status = ERROR_STATUS.get(result.error, 500)
    logger.warning(f"[{sid}] extraction failed ({status}): {result.error}")
    raise HTTPException(status_code=status, detail=result.error)


@router.get("/extract-linkedin-logo")
def extract_linkedin_logo(url: str = None):
    url = _require_url(url)
    sid = _session_id()
    logger.info(f"[{sid}] extracting LinkedIn logo from {url}")
    result = scraper.extract_linkedin_logo(url)
    _raise_for(result, sid)
    return result


@router.get("/extract-episode-date")
def extract_episode_date(url: str = None):
    url = _require_url(url)
    sid = _session_id()
    logger.info(f"[{sid}] extracting publish date from {url}")
    result = scraper.extract_episode_date(url)
    _raise_for(result, sid)
    return result


@router.get("/extract-transcript")
def extract_transcript(url: str = None):
    url = _require_url(url)
    sid = _session_id()
    logger.info(f"[{sid}] extracting transcript from {url}")
    result = scraper.extract_episode_transcript(url)
    _raise_for(result, sid)
    return result


@router.get("/extract-episode")
async def extract_episode(url: str = None):
    """Publish date and transcript for one episode, fetched side by side."""
    url = _require_url(url)
    sid = _session_id()
    logger.info(f"[{sid}] extracting episode data from {url}")

    date_result, transcript_result = await asyncio.gather(
        asyncio.to_thread(scraper.extract_episode_date, url),
        asyncio.to_thread(scraper.extract_episode_transcript, url),
    )
    _raise_for(date_result, sid)
    _raise_for(transcript_result, sid)

    logger.info(f"[{sid}] episode data extracted ({len(transcript_result.transcript)} transcript chars)")
    return {
        "success": True,
        "publish_date": date_result.publish_date,
        "original_date": date_result.original_date,
        "transcript": transcript_result.transcript,
        "date_method": date_result.extraction_method,
        "transcript_method": transcript_result.extraction_method,
    }


@router.get("/check-url")
def check_url(url: str = None):
    url = _require_url(url)
    result = scraper.check_url(url)
    if result.error == scraper.INVALID_URL:
        raise HTTPException(status_code=400, detail=result.error)
    return result


@router.post("/scrape-vc-profile")
def scrape_vc_profile(body: dict):
    url = _require_url(body.get("profileUrl"), "Profile URL is required")
    sid = _session_id()
    logger.info(f"[{sid}] scraping guest profile {url}")
    result = scraper.extract_vc_profile(url)
    _raise_for(result, sid)
    return result


@router.post("/scrape-episode-vcs")
def scrape_episode_vcs(body: dict):
    url = _require_url(body.get("episodeUrl"), "Episode URL is required")
    sid = _session_id()
    logger.info(f"[{sid}] scraping featured investors from {url}")
    result = scraper.extract_episode_vcs(url)
    _raise_for(result, sid)
    return result
