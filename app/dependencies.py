from fastapi import Query


class ListParams:
    """
    Reusable FastAPI dependency for the ``limit`` / ``offset`` window of
    article listings.

    Usage in a router::

        @router.get("/articles")
        async def list_articles(window: ListParams = Depends()):
            ...

    Attributes
    ----------
    limit:
        Maximum number of articles to return.  Absent or 0 means no
        limit.
    offset:
        Number of matching articles to skip (default 0).
    """

    def __init__(
        self,
        limit: int | None = Query(
            None,
            ge=0,
            description="Number of articles to return (0 or absent: all).",
        ),
        offset: int | None = Query(
            None,
            ge=0,
            description="Number of articles to skip.",
        ),
    ) -> None:
        self.limit = limit or None
        self.offset = offset or 0
