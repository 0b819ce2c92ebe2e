"""
Error taxonomy for the review core.

ValidationError and AuthenticationError never reach the store.
NotFoundError and StoreError come back from it. Nothing here is retried.
"""


class ReviewsError(Exception):
    """Base class for every error raised by the review core."""


class ValidationError(ReviewsError):
    """Input rejected before any store call (bad sub-rating, empty body, ...)."""


class AuthenticationError(ReviewsError):
    """No acting identity, or an identity the core cannot use."""


class NotFoundError(ReviewsError):
    """A professor, rating, course or organization id does not resolve."""

    def __init__(self, collection: str, document_id: str):
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"{collection}/{document_id} not found")


class StoreError(ReviewsError):
    """The backing store failed a read or a commit; carries its message."""
