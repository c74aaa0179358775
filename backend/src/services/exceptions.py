"""Shared exceptions for service layer operations."""


class QueryError(Exception):
    """
    Raised when the content store fails while answering a listing request.

    Wraps driver/ORM errors and store-call timeouts. The original exception is
    kept on `cause` (and chained as __cause__ by the raiser). `stage` names the
    query that failed: "items" for the primary listing query, or the status
    bucket name for an aggregate count.
    """

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"Story query failed ({stage}): {cause!r}")


class ValidationError(Exception):
    """
    Raised when listing parameters are malformed.

    `params` maps each invalid parameter name to a human-readable reason.
    """

    def __init__(self, params: dict[str, str]) -> None:
        self.params = params
        names = ", ".join(sorted(params))
        super().__init__(f"Invalid parameter(s): {names}")


class StoryNotFoundError(Exception):
    """Raised when a story ID does not exist or is not a story."""

    def __init__(self, story_id: int) -> None:
        self.story_id = story_id
        super().__init__(f"Story not found: {story_id}")


class StatusForbiddenError(Exception):
    """Raised when the caller asks for story statuses it may not see or set."""

    def __init__(self, statuses: list[str]) -> None:
        self.statuses = statuses
        super().__init__(f"Status is forbidden: {', '.join(statuses)}")
