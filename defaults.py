"""
Built-in data served when the database is not configured or not reachable.
"""

from typing import Any, Dict, List

from hashing import short_id

DEFAULT_ACCENT_COLOR = "#008f67"
DEFAULT_OG_IMAGE = "/assets/og-image.png"


def _video(source_id: str, title: str, category: str, tags: List[str], order: int, page: str,
           url_string: str = None) -> Dict[str, Any]:
    return {
        "id": source_id,
        "title": title,
        "category": category,
        "tags": tags,
        "order": order,
        "page": page,
        "platform": "hosted-embed",
        "sourceId": source_id,
        "shortId": url_string or short_id(source_id),
    }


DEFAULT_VIDEOS: Dict[str, List[Dict[str, Any]]] = {
    "oz": [
        _video("ssgxvlsdmx", "Chorus and Kids Stage L", "the-merry-land-of-oz", ["chorus", "kids"], 0, "oz"),
        _video("7kpm1d3mhv", "Chorus and Kids Stage R", "the-merry-land-of-oz", ["chorus", "kids"], 1, "oz"),
        _video("eklwt6f33t", "Section One: Dancers", "the-merry-land-of-oz", ["dancers"], 2, "oz"),
        _video("xqxp9qk6ab", "Section One: Stage R Chorus", "the-merry-land-of-oz", ["chorus"], 3, "oz"),
    ],
    "disc": [
        _video("vqb0pfo4zw", "Bathroom", "conflict", ["conflict"], 0, "disc", "zexm3j"),
        _video("5vqqwph6wq", "Cookies", "conflict", ["conflict"], 1, "disc", "4dykji"),
        _video("nujmnhh6fh", "DISC FULL Intro", "disc", ["disc"], 2, "disc", "1l49zo"),
        _video("1t2iqoeme2", "DISC HERO Intro", "disc", ["disc"], 3, "disc", "kx5ooj"),
        _video("l6ub2gwc2r", "Kitchen Adapt", "adapted", ["adapted"], 4, "disc", "tljhw8"),
        _video("2gexsi52zj", "Kitchen", "conflict", ["conflict"], 5, "disc", "4i9wdx"),
        _video("1cai4aoxq3", "Returning Home Adapt", "adapted", ["adapted"], 6, "disc", "xz3wsu"),
        _video("3u992i78fk", "Returning Home", "conflict", ["conflict"], 7, "disc", "ls0xk1"),
        _video("7i7k3gmrzh", "TV Adapt", "adapted", ["adapted"], 8, "disc", "679o3x"),
        _video("5emj65bgp7", "TV", "conflict", ["conflict"], 9, "disc", "u28f9k"),
    ],
    "vertical": [],
}

# showInDropdown: True = song/section (dropdown), False = audience tag (pill)
DEFAULT_CATEGORIES: Dict[str, List[Dict[str, Any]]] = {
    "oz": [
        {"id": "oz", "name": "Oz", "color": None, "order": 1, "page": "oz", "showInDropdown": True, "icon": None},
        {"id": "munchkinland", "name": "Munchkinland", "color": None, "order": 2, "page": "oz",
         "showInDropdown": True, "icon": None},
        {"id": "jitterbug", "name": "Jitterbug", "color": None, "order": 3, "page": "oz",
         "showInDropdown": True, "icon": None},
        {"id": "yellowbrickroad", "name": "Yellow Brick Road", "color": None, "order": 4, "page": "oz",
         "showInDropdown": True, "icon": None},
        {"id": "chorus", "name": "Chorus", "color": None, "order": 10, "page": "oz",
         "showInDropdown": False, "icon": None},
        {"id": "kids", "name": "Kids", "color": None, "order": 11, "page": "oz",
         "showInDropdown": False, "icon": None},
        {"id": "dancers", "name": "Dancers", "color": None, "order": 12, "page": "oz",
         "showInDropdown": False, "icon": None},
    ],
    "disc": [
        {"id": "conflict", "name": "Conflict", "color": None, "order": 1, "page": "disc",
         "showInDropdown": True, "icon": None},
        {"id": "adapted", "name": "Adapted", "color": None, "order": 2, "page": "disc",
         "showInDropdown": True, "icon": None},
    ],
    "vertical": [
        {"id": "performance", "name": "Performance", "color": None, "order": 1, "page": "vertical",
         "showInDropdown": True, "icon": None},
    ],
}

KNOWN_PAGES = list(DEFAULT_VIDEOS)


def default_videos(page: str) -> List[Dict[str, Any]]:
    return [dict(video, tags=list(video["tags"])) for video in DEFAULT_VIDEOS.get(page, [])]


def default_categories(page: str) -> List[Dict[str, Any]]:
    return [dict(category) for category in DEFAULT_CATEGORIES.get(page, [])]


def page_display_name(page: str) -> str:
    return page[:1].upper() + page[1:]


def default_page_config(page: str, site_url: str) -> Dict[str, Any]:
    """Config served for a page that has no stored record."""
    title = page_display_name(page)
    return {
        "page": page,
        "name": title,
        "accentColor": DEFAULT_ACCENT_COLOR,
        "pageTitle": title,
        "metaDescription": f"{title} - Video Collection",
        "metaKeywords": f"{page}, videos, collection",
        "ogTitle": title,
        "ogDescription": f"{title} - Video Collection",
        "ogImageUrl": DEFAULT_OG_IMAGE,
        "twitterTitle": None,
        "twitterDescription": None,
        "canonicalUrl": f"{site_url}/{page}.html",
    }
