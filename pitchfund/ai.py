# pitchfund/ai.py
import asyncio
import logging
import math
import re
from typing import List, Optional

import openai
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from openai import OpenAI

from pitchfund import config, supabase
from pitchfund.supabase import SupabaseError

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_TRANSCRIPT_TOKENS = 8000
MAX_KEYWORDS = 20

# snake_case, the shape of the keyword_tag enum
NEW_KEYWORD_RE = re.compile(r"^[a-z][a-z0-9_]*[a-z0-9]$|^[a-z]+$")

COMMON_INDUSTRY_TAGS = [
    "fintech", "healthtech", "edtech", "proptech", "foodtech", "cleantech",
    "b2b", "b2c", "saas", "marketplace", "e-commerce", "social", "gaming",
    "ai", "ml", "blockchain", "crypto", "iot", "cybersecurity", "biotech",
    "hardware", "software", "mobile", "web", "enterprise", "consumer",
    "retail", "healthcare", "education", "finance", "real estate", "logistics",
    "travel", "media", "entertainment", "sports", "fitness", "wellness",
    "automotive", "manufacturing", "energy", "sustainability", "climate",
]

COMMON_BUSINESS_MODEL_TAGS = [
    "b2b", "b2c", "b2b2c", "marketplace", "saas", "paas", "iaas",
    "subscription", "freemium", "pay-per-use", "transaction-based",
    "advertising", "affiliate", "licensing", "white-label", "franchise",
    "direct-sales", "e-commerce", "dropshipping", "aggregator", "broker",
    "on-demand", "sharing-economy", "peer-to-peer", "crowdsourcing", "crowdfunding",
    "data-monetization", "api-based", "integration", "automation", "consulting",
    "managed-service", "outsourcing", "channel-partner", "reseller", "distributor",
    "ecosystem", "network-effect", "viral", "content", "community", "social",
    "mobile-first", "web-based", "hybrid", "omnichannel", "enterprise",
    "smb", "consumer", "prosumer", "vertical", "horizontal", "niche",
]

_client: Optional[OpenAI] = None


def get_client() -> OpenAI:
    global _client
    if _client is None:
        # the SDK retries 429/5xx with exponential backoff
        _client = OpenAI(api_key=config.OPENAI_API_KEY, timeout=30.0, max_retries=5)
    return _client


class AIError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def validate_transcript_length(transcript) -> Optional[str]:
    """Error message for an unusable transcript, None when it can be sent."""
    if not transcript or not isinstance(transcript, str):
        return "Transcript is required and must be a string"
    # ~4 characters per token
    if math.ceil(len(transcript) / 4) > MAX_TRANSCRIPT_TOKENS:
        return "Transcript too long. Please limit to approximately 6,000 tokens."
    return None


def parse_tags_from_response(response: str, max_tags: int = 5) -> List[str]:
    if not response:
        return []
    tags = [t.strip().lower() for t in response.split(",")]
    return [t for t in tags if t][:max_tags]


def tagline_prompt(transcript: str) -> str:
    return f"""You are an expert at creating compelling startup taglines. Based on the following pitch transcript, generate a single, catchy tagline that captures the essence of what the company does. The tagline should be:
- One concise sentence (10-15 words maximum)
- Clear and memorable
- Focused on the company's value proposition
- Professional yet engaging

Here's the pitch transcript:

{transcript}

Generate only the tagline, no additional text or explanation:"""


def industry_prompt(transcript: str) -> str:
    return f"""You are an expert at categorizing startups by industry. Based on the following pitch transcript, suggest 3-5 relevant industry tags that best describe the company's sector and category.

Choose from common industry tags when applicable, but you can also suggest new ones if they're more accurate. Focus on:
- Primary industry/sector (e.g., fintech, healthtech, edtech)
- Business model type (e.g., b2b, b2c, saas, marketplace)
- Technology focus (e.g., ai, ml, blockchain, iot)
- Market segment (e.g., enterprise, consumer, healthcare)

Common industry tags for reference: {", ".join(COMMON_INDUSTRY_TAGS)}

Here's the pitch transcript:

{transcript}

Return only a comma-separated list of 3-5 industry tags, no additional text:"""


def business_model_prompt(transcript: str) -> str:
    return f"""You are an expert at analyzing startup business models. Based on the following pitch transcript, suggest 3-5 relevant business model tags that best describe how the company operates and generates revenue.

Focus on:
- Revenue model (e.g., subscription, marketplace, transaction-based, advertising)
- Customer segments (e.g., b2b, b2c, enterprise, smb)
- Distribution model (e.g., direct-sales, channel-partner, platform, saas)
- Market approach (e.g., on-demand, sharing-economy, peer-to-peer, freemium)

Common business model tags for reference: {", ".join(COMMON_BUSINESS_MODEL_TAGS)}

Here's the pitch transcript:

{transcript}

Return only a comma-separated list of 3-5 business model tags, no additional text:"""


def keywords_prompt(transcript: str, approved: List[str], reason_for_investing: Optional[str] = None,
                    description: Optional[str] = None, show_notes: Optional[str] = None) -> str:
    context = ""
    for heading, text in [
        ("Company description", description),
        ("Why the fund invested", reason_for_investing),
        ("Episode show notes", show_notes),
    ]:
        if isinstance(text, str) and text.strip():
            context += f"{heading}:\n{text.strip()}\n\n"

    return f"""You are an expert at tagging startups for a venture portfolio. Based on the following pitch transcript, suggest up to {MAX_KEYWORDS} keywords that describe the company's product, technology, customers and go-to-market.

Prefer keywords from the approved list. Suggest a new keyword only when nothing approved fits, written in lowercase snake_case (e.g., shelf_restocking). Do not repeat industry or business model categories such as fintech, saas or b2b.

Approved keywords: {", ".join(approved)}

{context}Here's the pitch transcript:

{transcript}

Return only a comma-separated list of keywords, no additional text:"""


def select_keywords(response: str, approved: List[str], industry_tags: List[str],
                    business_model_tags: List[str], max_keywords: int = MAX_KEYWORDS) -> List[str]:
    """
    Approved keywords come first, spelled the way the database spells them. New
    keywords are lowercased and kept only when they are well-formed and do not
    duplicate an industry or business model tag.
    """
    by_lower = {k.lower(): k for k in approved}
    taken = set(industry_tags) | set(business_model_tags)
    existing, new = [], []
    for raw in response.split(","):
        keyword = raw.strip().lower()
        if not keyword:
            continue
        if keyword in by_lower:
            existing.append(by_lower[keyword])
        elif keyword in taken:
            logger.info(f"Dropping keyword {keyword!r}: already an industry or business model tag")
        elif not NEW_KEYWORD_RE.match(keyword):
            logger.info(f"Dropping malformed keyword {keyword!r}")
        else:
            new.append(keyword)
    return list(dict.fromkeys(existing + new))[:max_keywords]


def standardized_tags() -> tuple:
    """(keywords, industry tags, business model tags) as the database enums define them."""
    keywords = [row["value"] if isinstance(row, dict) else row for row in supabase.rpc("get_valid_keywords") or []]
    industry = supabase.rpc("get_valid_industry_tags") or []
    business_model = supabase.rpc("get_valid_business_model_tags") or []
    return keywords, industry, business_model


def complete(prompt: str, max_tokens: int, temperature: float, user: str) -> str:
    try:
        completion = get_client().chat.completions.create(
            model=config.OPENAI_MODEL,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=temperature,
            user=user,
        )
    except openai.RateLimitError:
        raise AIError(429, "Rate limit exceeded. Please try again later.")
    except openai.AuthenticationError:
        raise AIError(401, "OpenAI authentication failed")
    except openai.BadRequestError as e:
        raise AIError(400, f"Request rejected by OpenAI: {e.message}")
    except openai.OpenAIError as e:
        logger.error(f"OpenAI request failed: {e}")
        raise AIError(500, "AI service unavailable. Please try again.")

    content = completion.choices[0].message.content if completion.choices else None
    return (content or "").strip()


async def _payload(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        raise AIError(400, "Invalid JSON in request body")
    transcript = body.get("transcript") if isinstance(body, dict) else None
    problem = validate_transcript_length(transcript)
    if problem:
        raise AIError(400, problem)
    if not config.OPENAI_API_KEY:
        logger.error("OPENAI_API_KEY is not configured")
        raise AIError(500, "OpenAI API not properly configured")
    return body


def _error(e: AIError) -> JSONResponse:
    return JSONResponse(status_code=e.status_code, content={"error": e.message})


@router.post("/generate-tagline")
async def generate_tagline(request: Request):
    try:
        transcript = (await _payload(request))["transcript"]
        tagline = await asyncio.to_thread(complete, tagline_prompt(transcript), 50, 0.7, "investment-form-tagline")
        if not tagline:
            raise AIError(500, "No tagline generated. Please try again.")
    except AIError as e:
        return _error(e)
    return {"tagline": tagline}


async def _tags(request: Request, prompt_for, kind: str):
    try:
        transcript = (await _payload(request))["transcript"]
        response = await asyncio.to_thread(complete, prompt_for(transcript), 100, 0.5, f"investment-form-{kind}-tags")
        tags = parse_tags_from_response(response, 5)
        if not tags:
            logger.warning(f"Could not parse {kind} tags from: {response!r}")
            raise AIError(500, f"Unable to parse {kind.replace('-', ' ')} tags from response. Please try again.")
    except AIError as e:
        return _error(e)
    return {"tags": tags}


@router.post("/generate-industry-tags")
async def generate_industry_tags(request: Request):
    return await _tags(request, industry_prompt, "industry")


@router.post("/generate-business-model-tags")
async def generate_business_model_tags(request: Request):
    return await _tags(request, business_model_prompt, "business-model")


@router.post("/generate-keywords")
async def generate_keywords(request: Request):
    try:
        body = await _payload(request)
        try:
            approved, industry, business_model = await asyncio.to_thread(standardized_tags)
        except SupabaseError as e:
            logger.error(f"Could not load standardized tags ({e.status_code}): {e.message}")
            raise AIError(502, "Could not load standardized tags. Please try again.")

        prompt = keywords_prompt(
            body["transcript"], approved,
            body.get("reason_for_investing"), body.get("description_raw"), body.get("episode_show_notes"),
        )
        response = await asyncio.to_thread(complete, prompt, 550, 0.5, "investment-form-keywords")
        if not response:
            raise AIError(500, "No keywords generated. Please try again.")

        keywords = select_keywords(response, approved, industry, business_model)
        if not keywords:
            logger.warning(f"No usable keywords in: {response!r}")
            raise AIError(500, "AI could not generate valid keywords. Please try again or select keywords manually.")
    except AIError as e:
        return _error(e)
    return {"keywords": keywords}
