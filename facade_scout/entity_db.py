"""Third-party entity, product and facade identification.

Combines a built-in entity database (embeds with known facade alternatives
plus a few common facade-less third parties) with optional loading of a
third-party-web style ``entities.json`` for wider coverage.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Protocol

from .models import Entity, Facade, Product
from .utils import extract_hostname, extract_registered_domain, is_network_url, strip_scheme

logger = logging.getLogger(__name__)

REACT_LIVE_CHAT_LOADER = {
    "name": "React Live Chat Loader",
    "repo": "https://github.com/calibreapp/react-live-chat-loader",
}

# Built-in entity database, same shape as third-party-web entities.json.
# Facades are ordered best first.
BUILTIN_ENTITIES: list[dict] = [
    # Live chat
    {
        "name": "Intercom",
        "categories": ["customer-success"],
        "domains": ["intercom.io", "intercomcdn.com", "intercomassets.com", "intercom.com"],
        "products": [{
            "name": "Intercom Widget",
            "urlPatterns": ["widget.intercom.io", "js.intercomcdn.com/shim.latest.js"],
            "facades": [
                REACT_LIVE_CHAT_LOADER,
                {"name": "Intercom Facade", "repo": "https://github.com/danielbachhuber/intercom-facade/"},
            ],
        }],
    },
    {
        "name": "Help Scout",
        "categories": ["customer-success"],
        "domains": ["helpscout.net"],
        "products": [{
            "name": "Help Scout Beacon",
            "urlPatterns": ["beacon-v2.helpscout.net"],
            "facades": [REACT_LIVE_CHAT_LOADER],
        }],
    },
    {
        "name": "Drift",
        "categories": ["marketing"],
        "domains": ["drift.com", "driftt.com"],
        "products": [{
            "name": "Drift Live Chat",
            "urlPatterns": ["re:js\\.driftt\\.com/include/.*/.*\\.js", "js.driftt.com/core/"],
            "facades": [REACT_LIVE_CHAT_LOADER],
        }],
    },
    {
        "name": "Userlike",
        "categories": ["customer-success"],
        "domains": ["userlike.com", "userlike-cdn-widgets.s3-eu-west-1.amazonaws.com"],
        "products": [{
            "name": "Userlike Chat",
            "urlPatterns": ["userlike-cdn-widgets."],
            "facades": [REACT_LIVE_CHAT_LOADER],
        }],
    },
    # Video
    {
        "name": "YouTube",
        "categories": ["video"],
        "domains": ["youtube.com", "ytimg.com", "ggpht.com", "youtube-nocookie.com", "googlevideo.com"],
        "products": [{
            "name": "YouTube Embedded Player",
            "urlPatterns": ["youtube.com/embed/", "youtube-nocookie.com/embed/"],
            "facades": [
                {"name": "Lite YouTube", "repo": "https://github.com/paulirish/lite-youtube-embed"},
                {"name": "Ngx Lite Video", "repo": "https://github.com/karim-mamdouh/ngx-lite-video"},
            ],
        }],
    },
    {
        "name": "Vimeo",
        "categories": ["video"],
        "domains": ["vimeo.com", "vimeocdn.com"],
        "products": [{
            "name": "Vimeo Embedded Player",
            "urlPatterns": ["player.vimeo.com/video/"],
            "facades": [
                {"name": "Lite Vimeo", "repo": "https://github.com/slightlyoff/lite-vimeo"},
                {"name": "Lite Vimeo Embed", "repo": "https://github.com/luwes/lite-vimeo-embed"},
            ],
        }],
    },
    # Social
    {
        "name": "Facebook",
        "categories": ["social"],
        "domains": ["facebook.com", "facebook.net", "fbcdn.net", "fbsbx.com"],
        "products": [{
            "name": "Facebook Messenger Customer Chat",
            "urlPatterns": ["re:connect\\.facebook\\.net/[^/]+/sdk/xfbml\\.customerchat\\.js"],
            "facades": [REACT_LIVE_CHAT_LOADER],
        }],
    },
    # No facade available
    {
        "name": "Google Analytics",
        "categories": ["analytics"],
        "domains": ["google-analytics.com", "googletagmanager.com"],
    },
    {
        "name": "Hotjar",
        "categories": ["analytics"],
        "domains": ["hotjar.com", "hotjar.io"],
    },
    {
        "name": "Twitter",
        "categories": ["social"],
        "domains": ["twitter.com", "twimg.com", "t.co"],
        "products": [{
            "name": "Twitter Embedded Tweets",
            "urlPatterns": ["platform.twitter.com/widgets.js"],
        }],
    },
]


class ResourceClassifier(Protocol):
    """Read-only URL classification service consumed by the attribution engine."""

    def entity_of(self, url: str) -> Entity | None: ...

    def product_of(self, url: str) -> Product | None: ...

    def is_first_party(self, url: str, main_entity: Entity | None) -> bool: ...


def _parse_entity(data: dict) -> Entity:
    """Build an Entity from a third-party-web style dict."""
    name = data["name"]
    products = []
    for product_data in data.get("products") or []:
        facades = tuple(
            Facade(name=f["name"], repo=f.get("repo", ""))
            for f in product_data.get("facades") or []
        )
        products.append(Product(
            name=product_data["name"],
            entity_name=name,
            url_patterns=tuple(product_data.get("urlPatterns") or []),
            facades=facades,
        ))
    domains = tuple(d[2:] if d.startswith("*.") else d for d in data.get("domains") or [])
    return Entity(
        name=name,
        domains=domains,
        categories=tuple(data.get("categories") or []),
        products=tuple(products),
    )


def _compile_patterns(url_patterns: tuple[str, ...]) -> tuple[str | re.Pattern, ...]:
    """Compile ``re:`` patterns; plain patterns stay substrings.

    Raises:
        re.error: If a ``re:`` pattern is not a valid regular expression.
    """
    return tuple(re.compile(p[3:]) if p.startswith("re:") else p for p in url_patterns)


def _pattern_matches(pattern: str | re.Pattern, url: str) -> bool:
    if isinstance(pattern, re.Pattern):
        return pattern.search(url) is not None
    return pattern in strip_scheme(url)


class EntityDatabase:
    """Entity/product/facade classification database.

    Implements ``ResourceClassifier``. The built-in table is always loaded;
    entities from ``entities_path`` replace built-ins with the same name.
    """

    def __init__(self, entities_path: str | Path | None = None):
        # entity name -> Entity
        self._entities: dict[str, Entity] = {}
        for data in BUILTIN_ENTITIES:
            entity = _parse_entity(data)
            self._entities[entity.name] = entity

        if entities_path:
            self._load_entities_json(Path(entities_path))

        # domain -> Entity
        self._by_domain: dict[str, Entity] = {}
        # product -> compiled URL patterns
        self._patterns: dict[Product, tuple[str | re.Pattern, ...]] = {}
        for entity in self._entities.values():
            for domain in entity.domains:
                self._by_domain[domain] = entity
            for product in entity.products:
                self._patterns[product] = _compile_patterns(product.url_patterns)

        logger.info(
            "EntityDatabase loaded with %d entities, %d domain entries",
            len(self._entities), len(self._by_domain),
        )

    def _load_entities_json(self, path: Path) -> None:
        """Load a third-party-web style entities.json list."""
        if not path.exists():
            logger.warning("Entities file not found: %s", path)
            return
        try:
            with open(path) as f:
                data = json.load(f)
            if isinstance(data, dict):
                data = data.get("entities", [])
            count = 0
            for entry in data:
                if not isinstance(entry, dict) or "name" not in entry:
                    continue
                entity = _parse_entity(entry)
                try:
                    for product in entity.products:
                        _compile_patterns(product.url_patterns)
                except (re.error, AttributeError) as e:
                    logger.warning("Skipping entity %s with bad URL pattern: %s", entity.name, e)
                    continue
                self._entities[entity.name] = entity
                count += 1
            logger.info("Loaded %d entities from %s", count, path)
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.error("Failed to parse entities file %s: %s", path, e)

    def entity_of(self, url: str) -> Entity | None:
        """Return the entity owning the URL's host, or None if unknown.

        Walks up the domain hierarchy: js.intercomcdn.com -> intercomcdn.com
        """
        if not is_network_url(url):
            return None
        hostname = extract_hostname(url)
        if not hostname:
            return None

        # Try exact match first
        if hostname in self._by_domain:
            return self._by_domain[hostname]

        reg_domain = extract_registered_domain(hostname)
        if reg_domain in self._by_domain:
            return self._by_domain[reg_domain]

        # Try removing subdomains one level at a time
        parts = hostname.split(".")
        for i in range(1, len(parts)):
            parent = ".".join(parts[i:])
            if parent in self._by_domain:
                return self._by_domain[parent]

        return None

    def product_of(self, url: str) -> Product | None:
        """Return the first product of the URL's entity whose pattern matches."""
        entity = self.entity_of(url)
        if entity is None:
            return None
        for product in entity.products:
            if any(_pattern_matches(p, url) for p in self._patterns[product]):
                return product
        return None

    def is_first_party(self, url: str, main_entity: Entity | None) -> bool:
        if main_entity is None:
            return False
        entity = self.entity_of(url)
        return entity is not None and entity.name == main_entity.name

    @property
    def entity_count(self) -> int:
        return len(self._entities)
