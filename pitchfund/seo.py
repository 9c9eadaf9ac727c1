# pitchfund/seo.py
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import Response

from pitchfund import config

router = APIRouter()

CACHE_HEADERS = {"Cache-Control": "public, max-age=3600, s-maxage=3600"}

# (path, changefreq, priority) for public pages only
SITEMAP_PAGES = [
    ("/", "daily", "1.0"),
    ("/portfolio", "weekly", "0.8"),
]

DISALLOWED = ["/api/", "/api/cron/", "/admin/", "/auth/", "/lp/", "/_next/"]


def generate_robots_txt(site_url: str) -> str:
    lines = ["# *", "User-agent: *", "Allow: /", "Allow: /api/og/"]
    lines += [f"Disallow: {path}" for path in DISALLOWED]
    lines += ["", "# Host", f"Host: {site_url}", "", "# Sitemaps", f"Sitemap: {site_url}/sitemap.xml", ""]
    return "\n".join(lines)


def generate_sitemap_xml(site_url: str, now: Optional[datetime] = None) -> str:
    lastmod = (now or datetime.now(timezone.utc)).isoformat()
    urls = "".join(
        f"""
  <url>
    <loc>{site_url}{path}</loc>
    <lastmod>{lastmod}</lastmod>
    <changefreq>{changefreq}</changefreq>
    <priority>{priority}</priority>
  </url>"""
        for path, changefreq, priority in SITEMAP_PAGES
    )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{urls}
</urlset>
"""


@router.get("/robots.txt")
def robots():
    return Response(generate_robots_txt(config.SITE_URL), media_type="text/plain", headers=CACHE_HEADERS)


@router.get("/sitemap.xml")
def sitemap():
    return Response(generate_sitemap_xml(config.SITE_URL), media_type="application/xml", headers=CACHE_HEADERS)
