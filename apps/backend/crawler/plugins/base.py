"""
Base site adapter interface for job board scraping.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Optional, Any
from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

DEFAULT_COMPANY = "Not specified"
DEFAULT_LOCATION = "Kigali, Rwanda"
DEFAULT_JOB_TYPE = "Full-time"


@dataclass
class ListingCard:
    """One parsed listing, ready for reconciliation"""
    title: str
    company: str
    location: str
    source_url: str
    posted_date: datetime
    deadline: datetime
    job_type: Optional[str] = DEFAULT_JOB_TYPE
    description: str = ""
    requirements: List[str] = field(default_factory=list)
    responsibilities: List[str] = field(default_factory=list)
    category: Optional[str] = None
    experience_level: Optional[str] = None
    salary: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        """Column -> value mapping for the scraped_jobs table"""
        return {
            'source_url': self.source_url,
            'title': self.title,
            'company': self.company,
            'location': self.location,
            'job_type': self.job_type,
            'posted_date': self.posted_date,
            'deadline': self.deadline,
            'description': self.description,
            'requirements': list(self.requirements),
            'responsibilities': list(self.responsibilities),
            'category': self.category,
            'experience_level': self.experience_level,
            'salary': self.salary,
        }


class SiteAdapter(ABC):
    """
    Base class for site adapters.

    An adapter owns everything that depends on one job board's markup:
    where the listing index lives, how to find listing cards on an index
    page, how to tell whether another page follows, and how to turn one
    card into a ListingCard. The walker and reconciler never look at HTML.
    """

    def __init__(self, name: str, base_url: str, list_path: str):
        """
        Args:
            name: Source identifier stored on every record (e.g. 'JobinRwanda')
            base_url: Site root used to resolve relative links
            list_path: Path of the paginated listing index
        """
        self.name = name
        self.base_url = base_url
        self.list_path = list_path
        self.logger = logging.getLogger(f"{__name__}.{name}")

    @property
    def list_url(self) -> str:
        return f"{self.base_url}{self.list_path}"

    def page_url(self, page: int) -> str:
        """URL of the given 1-based index page"""
        return f"{self.list_url}?page={page}"

    @abstractmethod
    def extract_cards(self, html: str) -> List[Tag]:
        """Return every listing-card fragment on an index page."""
        pass

    @abstractmethod
    def has_next_page(self, html: str) -> bool:
        """True if the index page links to a following page."""
        pass

    @abstractmethod
    def parse_fragment(self, fragment: Tag, now: Optional[datetime] = None) -> Optional[ListingCard]:
        """
        Parse one listing-card fragment.

        Returns:
            ListingCard, or None when the fragment is incomplete
        """
        pass

    def get_soup(self, html: str) -> BeautifulSoup:
        """Helper to create BeautifulSoup instance"""
        return BeautifulSoup(html, 'lxml')

    def __repr__(self):
        return f"<{self.__class__.__name__}(name={self.name}, base_url={self.base_url})>"
