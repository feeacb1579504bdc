"""Exceptions raised by the travel pricing package."""


class PricingError(Exception):
    """Base exception for pricing errors"""
    pass


class StaleSnapshotError(PricingError):
    """A versioned write was based on an outdated snapshot."""

    def __init__(self, enquiry_id: str, expected_version: int, current_version: int):
        self.enquiry_id = enquiry_id
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            f"Pricing for enquiry {enquiry_id} is at version {current_version}, "
            f"write expected version {expected_version}"
        )


class ProposalValidationError(PricingError):
    """A proposal cannot be sent; carries the blocking reasons."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


class SlabNotFoundError(PricingError, ValueError):
    pass


class TemplateNotFoundError(PricingError, ValueError):
    pass
