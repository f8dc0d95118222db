from typing import List, Optional, Sequence

from core.listing import PlatformListing
from core.providers.base import ListingProvider
from core.synthesis.synthesizer import Synthesizer


class SyntheticProvider(ListingProvider):
    """Terminal strategy: synthesized listings, always non-empty for a non-empty platform set.

    Without an injected synthesizer every call gets a freshly seeded one, so
    the API workers and the refresh thread never share a ``random.Random``.
    """

    name = "synthetic"

    def __init__(self, synthesizer: Optional[Synthesizer] = None):
        super().__init__()
        self.synthesizer = synthesizer

    def try_fetch(self, product_name: str, platforms: Sequence[str],
                  product_id: Optional[int] = None) -> Optional[List[PlatformListing]]:
        synthesizer = self.synthesizer or Synthesizer()
        return synthesizer.synthesize(product_name, platforms, product_id) or None
