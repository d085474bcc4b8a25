"""Engine components: fetch → check images → rewrite titles → export."""

from .dedup import SeenIdentifiers
from .fetcher import FetchResult, Fetcher, build_client
from .image_checker import CheckResult, ImageChecker, build_policy
from .items import ImageStatus, Item, merge_titles
from .parser import PostParser
from .rewriter import AnthropicTitleService, RewriteResult, TitleRewriter
from .validator import clean_domain, validate_domain

__all__ = [
    "AnthropicTitleService",
    "CheckResult",
    "FetchResult",
    "Fetcher",
    "ImageChecker",
    "ImageStatus",
    "Item",
    "PostParser",
    "RewriteResult",
    "SeenIdentifiers",
    "TitleRewriter",
    "build_client",
    "build_policy",
    "clean_domain",
    "merge_titles",
    "validate_domain",
]
