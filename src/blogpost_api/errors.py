"""Error taxonomy shared by the stores and the HTTP layer."""


class PostValidationError(ValueError):
    """Required post fields are missing or malformed. Maps to HTTP 400."""


class PostNotFoundError(LookupError):
    """No post exists with the requested id. Maps to HTTP 404."""

    def __init__(self, post_id: str) -> None:
        super().__init__(f"Post {post_id} not found")
        self.post_id = post_id


class StoreError(RuntimeError):
    """The underlying database failed. Maps to HTTP 500; detail is never returned."""
