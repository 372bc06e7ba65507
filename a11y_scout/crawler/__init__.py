"""Site traversal: frontier, fetch capability, robots.txt and the BFS crawler."""
from a11y_scout.crawler.crawler import FetchCapability, SiteCrawler, crawl
from a11y_scout.crawler.frontier import CrawlPolicy, Frontier, is_admissible, normalize_url
from a11y_scout.crawler.models import CrawlTask, PageRecord, PageSnapshot

__all__ = [
    "CrawlPolicy",
    "CrawlTask",
    "FetchCapability",
    "Frontier",
    "PageRecord",
    "PageSnapshot",
    "SiteCrawler",
    "crawl",
    "is_admissible",
    "normalize_url",
]
