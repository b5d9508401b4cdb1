"""Domain exceptions shared by the store, the auth gate and the routers."""


class FavouritesError(Exception):
    """Base exception for favourites operations."""

    pass


class AuthenticationError(FavouritesError):
    """Raised when a request cannot be tied to a user."""

    pass


class ValidationFailedError(FavouritesError):
    """Raised when one or more fields fail validation.

    Every violation found in a payload is carried in ``errors``; the message
    joins them so it can be sent to the client as-is.
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(f"validation failed: {'; '.join(self.errors)}")


class FavouriteNotFoundError(FavouritesError):
    """Raised when no favourite exists for the (user, asset) pair."""

    def __init__(self, message: str = "favourite not found"):
        super().__init__(message)


class FavouriteAlreadyExistsError(FavouritesError):
    """Raised when a favourite for the (user, asset) pair is already stored."""

    def __init__(self, message: str = "favourite already exists"):
        super().__init__(message)


class RateLimitExceededError(FavouritesError):
    """Raised when a user has used up the requests allowed in the current window."""

    def __init__(self, retry_after: float):
        self.retry_after = retry_after
        super().__init__("rate limit exceeded")


class StoreError(FavouritesError):
    """Raised when the backing store fails for reasons other than key state."""

    pass
