"""
Service layer for story listings: primary query and per-status counts.

Both operate on an immutable QuerySpec (see services.story_query). Store
failures and timeouts are raised as QueryError; nothing is retried and no
partial result is returned.
"""
import asyncio
import logging
import math
from collections.abc import Awaitable
from dataclasses import dataclass, replace
from typing import Any, TypeVar

from sqlalchemy import and_, case, exists, false, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import ColumnElement, Select

from models.post import Post
from models.term import Term, post_terms
from models.user import User
from services.exceptions import QueryError, ValidationError
from services.story_query import OrderTerm, QuerySpec, TaxonomyClause
from services.utils import escape_like, search_terms

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Status buckets reported alongside edit-context listings. Each bucket is
# counted independently; "all" overlaps the single-status buckets.
STATUS_BUCKETS: dict[str, tuple[str, ...]] = {
    "all": ("publish", "draft", "future"),
    "publish": ("publish",),
    "future": ("future",),
    "draft": ("draft",),
}

DEFAULT_QUERY_TIMEOUT = 10.0

# Symbolic sort keys -> columns
SORT_COLUMNS: dict[str, Any] = {
    "date": Post.date,
    "modified": Post.updated_at,
    "id": Post.id,
    "title": func.lower(Post.title),
    "slug": Post.slug,
    "author": Post.author_id,
    "parent": Post.parent_id,
    "menu_order": Post.menu_order,
    "author_display_name": User.display_name,
}

# Tables a JoinSpec may name
JOIN_TARGETS: dict[str, Any] = {
    "users": User,
}


@dataclass
class ListingResult:
    """One page of stories matching a QuerySpec."""

    items: list[Post]
    total: int
    total_pages: int
    page: int
    per_page: int

    @property
    def ids(self) -> list[int]:
        """Story ids in result order."""
        return [item.id for item in self.items]


async def _run_store_call(stage: str, awaitable: Awaitable[T], timeout: float) -> T:
    """Await a content-store call under a timeout, converting failures to QueryError."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except TimeoutError as e:
        logger.warning("Story query timed out after %ss (stage=%s)", timeout, stage)
        raise QueryError(stage, e) from e
    except SQLAlchemyError as e:
        logger.error("Story query failed (stage=%s): %s", stage, e, exc_info=True)
        raise QueryError(stage, e) from e


def _search_filter(search: str) -> ColumnElement[bool]:
    """Every whitespace-separated term must match the title, excerpt, or content."""
    conditions = []
    for term in search_terms(search):
        pattern = f"%{escape_like(term)}%"
        conditions.append(or_(
            Post.title.ilike(pattern, escape="\\"),
            Post.excerpt.ilike(pattern, escape="\\"),
            Post.content.ilike(pattern, escape="\\"),
        ))
    return and_(*conditions)


def _taxonomy_filter(clause: TaxonomyClause) -> ColumnElement[bool]:
    """
    Build the EXISTS condition for one taxonomy clause.

    Term ids are matched exactly (no descendant expansion). The taxonomy is
    part of the match so ids from another taxonomy never satisfy the clause.
    """
    has_term = exists(
        select(post_terms.c.post_id)
        .join(Term, post_terms.c.term_id == Term.id)
        .where(
            post_terms.c.post_id == Post.id,
            Term.taxonomy == clause.taxonomy,
            Term.id.in_(clause.terms),
        ),
    )
    if clause.operator == "NOT IN":
        return ~has_term
    return has_term


def build_filters(spec: QuerySpec) -> list[ColumnElement[bool]]:
    """
    Translate a QuerySpec's filters into SQL conditions (combined with AND).

    Include and exclude on the same dimension both apply, so an id present in
    both sets is excluded.
    """
    filters: list[ColumnElement[bool]] = [Post.post_type == spec.post_type]

    if spec.statuses is not None:
        # An empty status set matches nothing; it never lifts the status filter
        filters.append(Post.status.in_(spec.statuses) if spec.statuses else false())
    if spec.author_in is not None:
        filters.append(Post.author_id.in_(spec.author_in) if spec.author_in else false())
    if spec.author_not_in:
        # NULL authors are not "in" the excluded set
        filters.append(or_(Post.author_id.is_(None), Post.author_id.not_in(spec.author_not_in)))
    if spec.post_in is not None:
        filters.append(Post.id.in_(spec.post_in) if spec.post_in else false())
    if spec.post_not_in:
        filters.append(Post.id.not_in(spec.post_not_in))
    if spec.post_name_in is not None:
        filters.append(Post.slug.in_(spec.post_name_in) if spec.post_name_in else false())
    if spec.post_parent_in is not None:
        filters.append(
            Post.parent_id.in_(spec.post_parent_in) if spec.post_parent_in else false(),
        )
    if spec.post_parent_not_in:
        filters.append(
            or_(Post.parent_id.is_(None), Post.parent_id.not_in(spec.post_parent_not_in)),
        )
    if spec.menu_order is not None:
        filters.append(Post.menu_order == spec.menu_order)
    if spec.search and search_terms(spec.search):
        filters.append(_search_filter(spec.search))

    if spec.date_query is not None:
        column = Post.updated_at if spec.date_query.column == "modified" else Post.date
        if spec.date_query.before is not None:
            filters.append(column < spec.date_query.before)
        if spec.date_query.after is not None:
            filters.append(column > spec.date_query.after)

    if spec.tax_query is not None and spec.tax_query.clauses:
        tax_conditions = [_taxonomy_filter(c) for c in spec.tax_query.clauses]
        if spec.tax_query.relation == "OR":
            filters.append(or_(*tax_conditions))
        else:
            filters.append(and_(*tax_conditions))

    return filters


def _positional_order(values: tuple[Any, ...] | None, column: Any) -> Any:
    """Order rows by the position of `column` in `values` (unlisted rows last)."""
    if not values:
        return Post.id.asc()
    return case(
        {value: position for position, value in enumerate(values)},
        value=column,
        else_=len(values),
    ).asc()


def _relevance_order(search: str) -> Any:
    """Rank full-phrase title matches first, then all-terms title matches, then the rest."""
    if not search_terms(search):
        return Post.date.desc()
    phrase = f"%{escape_like(search.strip())}%"
    term_conditions = [
        Post.title.ilike(f"%{escape_like(term)}%", escape="\\") for term in search_terms(search)
    ]
    return case(
        (Post.title.ilike(phrase, escape="\\"), 1),
        (and_(*term_conditions), 2),
        (Post.excerpt.ilike(phrase, escape="\\"), 3),
        else_=4,
    ).asc()


def _order_clause(term: OrderTerm, spec: QuerySpec) -> Any:
    """Resolve one symbolic OrderTerm into an ORDER BY expression."""
    if term.field == "include":
        return _positional_order(spec.post_in, Post.id)
    if term.field == "include_slugs":
        return _positional_order(spec.post_name_in, Post.slug)
    if term.field == "relevance":
        return _relevance_order(spec.search or "")
    column = SORT_COLUMNS[term.field]
    return column.desc() if term.direction == "desc" else column.asc()


def build_select(spec: QuerySpec) -> Select:
    """Build the paginated SELECT for a QuerySpec, including joins and ordering."""
    if spec.ids_only:
        query = select(Post.id)
    else:
        query = select(Post).options(selectinload(Post.terms))

    for join in spec.joins:
        target = JOIN_TARGETS[join.table]
        query = query.outerjoin(
            target,
            getattr(Post, join.local_key) == getattr(target, join.remote_key),
        )

    query = query.where(*build_filters(spec))

    order_terms = spec.order_terms or (OrderTerm("date", spec.order), OrderTerm("id", spec.order))
    query = query.order_by(*(_order_clause(term, spec) for term in order_terms))

    return query.offset(spec.effective_offset).limit(spec.per_page)


def build_count(spec: QuerySpec) -> Select:
    """Build a count-only query over the spec's filters (ids only, no ordering, no paging)."""
    id_query = select(Post.id).where(*build_filters(spec))
    return select(func.count()).select_from(id_query.subquery())


async def _count(db: AsyncSession, spec: QuerySpec) -> int:
    result = await db.execute(build_count(spec))
    return int(result.scalar() or 0)


async def _fetch(db: AsyncSession, spec: QuerySpec) -> list[Post]:
    result = await db.execute(build_select(spec))
    return list(result.scalars().unique().all())


async def execute_query(
    db: AsyncSession,
    spec: QuerySpec,
    timeout: float = DEFAULT_QUERY_TIMEOUT,
) -> ListingResult:
    """
    Run the primary listing query for a QuerySpec.

    The post type is forced to the spec's configured type before querying.
    Status gating (which statuses the caller may see) is decided before the
    spec gets here.

    Args:
        db: Database session.
        spec: Assembled query specification.
        timeout: Per store-call timeout in seconds.

    Returns:
        ListingResult with the page of stories and total match count.

    Raises:
        QueryError: If the store fails or a call times out.
    """
    total = await _run_store_call("items", _count(db, spec), timeout)
    items = await _run_store_call("items", _fetch(db, spec), timeout)
    total_pages = math.ceil(total / spec.per_page) if total else 0
    return ListingResult(
        items=items,
        total=total,
        total_pages=total_pages,
        page=spec.page,
        per_page=spec.per_page,
    )


async def count_by_status(
    db: AsyncSession,
    spec: QuerySpec,
    buckets: dict[str, tuple[str, ...]] = STATUS_BUCKETS,
    timeout: float = DEFAULT_QUERY_TIMEOUT,
) -> dict[str, int]:
    """
    Count stories matching the spec's filters for each status bucket.

    The caller's status filter is replaced by each bucket's statuses; every
    other filter is preserved. Each bucket works on its own derived copy of
    the spec (stripped to an ids-only, unordered, single-row projection), so
    no query state is shared between buckets.

    Raises:
        QueryError: If any bucket's count fails; no partial counts are returned.
    """
    base = replace(
        spec,
        page=1,
        per_page=1,
        offset=None,
        ids_only=True,
        joins=(),
        order_terms=(),
    )
    counts: dict[str, int] = {}
    for bucket, statuses in buckets.items():
        bucket_spec = replace(base, statuses=tuple(statuses))
        counts[bucket] = await _run_store_call(bucket, _count(db, bucket_spec), timeout)
    return counts


async def list_stories(
    db: AsyncSession,
    spec: QuerySpec,
    with_status_counts: bool = False,
    timeout: float = DEFAULT_QUERY_TIMEOUT,
) -> tuple[ListingResult, dict[str, int] | None]:
    """
    Run the primary listing query and, optionally, the per-status counts.

    Either everything succeeds or a QueryError propagates; counts are never
    silently zeroed.

    Raises:
        QueryError: If any store call fails or times out.
        ValidationError: If the requested page is past the last page.
    """
    result = await execute_query(db, spec, timeout=timeout)
    if result.total and spec.offset is None and spec.page > result.total_pages:
        raise ValidationError({
            "page": "The page number requested is larger than the number of pages available.",
        })

    status_counts = None
    if with_status_counts:
        status_counts = await count_by_status(db, spec, timeout=timeout)
    return result, status_counts
