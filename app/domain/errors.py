"""Domain exceptions for the recommender core."""


class RecommenderError(Exception):
    """Base exception for the recommender."""

    pass


class NotFoundError(RecommenderError):
    """Raised when a referenced product does not exist."""

    def __init__(self, product_id: str):
        super().__init__(f"Product not found with id: {product_id}")
        self.product_id = product_id


class CollaboratorUnavailableError(RecommenderError):
    """Raised when the embedding index, catalog store or text generator fails at transport/store level."""

    def __init__(self, collaborator: str, reason: str):
        super().__init__(f"{collaborator} unavailable: {reason}")
        self.collaborator = collaborator
        self.reason = reason


class ValidationFailureError(RecommenderError):
    """Raised when input to the core is malformed. Always raised before any collaborator call."""

    pass
