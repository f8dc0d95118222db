# Error taxonomy for the listing acquisition pipeline.
# Providers raise these internally; the provider adapters and the orchestrator
# turn them into fallthrough so callers only ever see NoListingsError.


class ProviderError(Exception):
    """Base class for a data-acquisition strategy failing."""


class ProviderNotConfigured(ProviderError):
    """A required credential is missing or still a placeholder."""


class TransientProviderError(ProviderError):
    """Network failure, timeout or non-success HTTP status. Safe to retry."""


class PayloadValidationError(ProviderError):
    """The provider answered, but the payload was malformed or held no valid entries."""


class NoDataError(ProviderError):
    """The provider answered with a well-formed but empty result."""


class NoListingsError(Exception):
    """Every strategy in the chain failed. Callers should offer a retry."""

    def __init__(self, product_name: str):
        super().__init__(f"No listing data available for '{product_name}', consider retrying")
        self.product_name = product_name


class ProductNotFoundError(LookupError):
    """No tracked product has the requested id."""

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id
