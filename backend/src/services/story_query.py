"""
Query specification for story listings.

Two pure steps turn validated request parameters into a QuerySpec:

1. map_request_params() renames the public parameter vocabulary to the
   internal query vocabulary, keeping only registered, present parameters.
2. FilterAssembler.assemble() adds the date range, taxonomy clauses, forced
   post type, clamped page size and the resolved ordering (including the
   author display-name join).

No I/O happens here. The resulting QuerySpec is immutable; callers derive
variants with dataclasses.replace() instead of mutating a shared object.
"""
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from core.taxonomies import STORY_TAXONOMIES, TaxonomyConfig, rest_taxonomies
from models.post import STORY_POST_TYPE

SortDirection = Literal["asc", "desc"]
TaxRelation = Literal["AND", "OR"]

# Public API parameter -> internal QuerySpec field. Values are accepted as-passed.
PARAMETER_MAPPINGS: dict[str, str] = {
    "author": "author_in",
    "author_exclude": "author_not_in",
    "exclude": "post_not_in",
    "include": "post_in",
    "menu_order": "menu_order",
    "offset": "offset",
    "order": "order",
    "orderby": "orderby",
    "page": "page",
    "parent": "post_parent_in",
    "parent_exclude": "post_parent_not_in",
    "search": "search",
    "slug": "post_name_in",
    "status": "statuses",
}

# orderby values that sort on a joined field rather than a posts column
DERIVED_ORDERBY = {"story_author"}

# orderby values that sort by position in a request list, not by a column
POSITIONAL_ORDERBY = {"include", "include_slugs"}


@dataclass(frozen=True)
class DateRange:
    """Both bounds apply to the same column and are combined with AND."""

    before: datetime | None = None
    after: datetime | None = None
    column: str = "date"


@dataclass(frozen=True)
class TaxonomyClause:
    """Match posts that have (IN) or lack (NOT IN) any of the given term ids."""

    taxonomy: str
    terms: tuple[int, ...]
    operator: Literal["IN", "NOT IN"] = "IN"
    include_children: bool = False


@dataclass(frozen=True)
class TaxQuery:
    """Taxonomy clauses combined with a single boolean relation."""

    relation: TaxRelation = "AND"
    clauses: tuple[TaxonomyClause, ...] = ()


@dataclass(frozen=True)
class JoinSpec:
    """Left join against another store, e.g. users for author display names."""

    table: str
    local_key: str
    remote_key: str = "id"


@dataclass(frozen=True)
class OrderTerm:
    """One ORDER BY expression. `field` is a symbolic sort key resolved by the executor."""

    field: str
    direction: SortDirection = "desc"


@dataclass(frozen=True)
class QuerySpec:
    """Normalized, immutable description of one story listing query."""

    post_type: str = STORY_POST_TYPE

    # Pagination
    page: int = 1
    per_page: int = 10
    offset: int | None = None

    # Requested sort (as sent); order_terms holds the resolved ordering
    order: SortDirection = "desc"
    orderby: str = "date"
    order_terms: tuple[OrderTerm, ...] = ()
    joins: tuple[JoinSpec, ...] = ()

    # Filters
    author_in: tuple[int, ...] | None = None
    author_not_in: tuple[int, ...] | None = None
    post_in: tuple[int, ...] | None = None
    post_not_in: tuple[int, ...] | None = None
    post_name_in: tuple[str, ...] | None = None
    post_parent_in: tuple[int, ...] | None = None
    post_parent_not_in: tuple[int, ...] | None = None
    menu_order: int | None = None
    search: str | None = None
    statuses: tuple[str, ...] | None = None
    date_query: DateRange | None = None
    tax_query: TaxQuery | None = None

    # Projection: ids-only skips hydration of full records
    ids_only: bool = False

    @property
    def effective_offset(self) -> int:
        """Row offset: an explicit offset wins over the page-derived one."""
        if self.offset is not None:
            return self.offset
        return (self.page - 1) * self.per_page


def _freeze(value: Any) -> Any:
    """Convert list values to tuples so QuerySpec stays hashable and immutable."""
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(value)
    return value


def map_request_params(
    params: Mapping[str, Any],
    registered: Collection[str],
) -> dict[str, Any]:
    """
    Translate public API parameters into a QuerySpec fragment.

    Only parameters that are both registered and present in `params` are
    mapped; anything else is silently omitted. Defaults are never invented
    here - the schema layer decides which defaults are present.

    Args:
        params: Validated request parameters keyed by public name.
        registered: Names of the currently enabled collection parameters.

    Returns:
        Dict keyed by internal QuerySpec field names.
    """
    fragment: dict[str, Any] = {}
    for api_param, internal_field in PARAMETER_MAPPINGS.items():
        if api_param in registered and params.get(api_param) is not None:
            fragment[internal_field] = _freeze(params[api_param])
    return fragment


@dataclass(frozen=True)
class FilterAssembler:
    """
    Enrich a mapped QuerySpec fragment into a complete QuerySpec.

    Configuration (post type, taxonomies, page-size bounds) is injected at
    construction; assemble() depends only on its arguments and that
    configuration, so repeated calls with equal inputs give equal specs.
    """

    post_type: str = STORY_POST_TYPE
    taxonomies: tuple[TaxonomyConfig, ...] = STORY_TAXONOMIES
    per_page_default: int = 10
    per_page_max: int = 100
    users_table: str = "users"

    def assemble(
        self,
        fragment: Mapping[str, Any],
        params: Mapping[str, Any],
        registered: Collection[str],
    ) -> QuerySpec:
        """
        Build the QuerySpec for a listing request.

        Args:
            fragment: Output of map_request_params().
            params: Validated request parameters keyed by public name.
            registered: Names of the currently enabled collection parameters.
        """
        values = dict(fragment)

        date_query = self.build_date_range(params, registered)
        if date_query is not None:
            values["date_query"] = date_query

        # per_page always comes from the request (or the default), clamped to the ceiling
        if "per_page" in registered:
            values["per_page"] = self.clamp_per_page(params.get("per_page"))
        else:
            values["per_page"] = self.per_page_default

        tax_query = self.build_tax_query(params)
        if tax_query is not None:
            values["tax_query"] = tax_query

        # The content type is not a user input
        values["post_type"] = self.post_type

        order = values.get("order", "desc")
        orderby = values.get("orderby", "date")
        joins, order_terms = self.resolve_ordering(
            orderby, order, has_search=bool((values.get("search") or "").strip()),
        )
        values["joins"] = joins
        values["order_terms"] = order_terms

        return QuerySpec(**values)

    def clamp_per_page(self, per_page: int | None) -> int:
        """Apply the default page size and clamp to the configured maximum."""
        if per_page is None:
            return self.per_page_default
        return max(1, min(per_page, self.per_page_max))

    @staticmethod
    def build_date_range(
        params: Mapping[str, Any],
        registered: Collection[str],
    ) -> DateRange | None:
        """Combine `before`/`after` into one date range, or None if neither was sent."""
        before = params.get("before") if "before" in registered else None
        after = params.get("after") if "after" in registered else None
        if before is None and after is None:
            return None
        return DateRange(before=before, after=after)

    def build_tax_query(self, params: Mapping[str, Any]) -> TaxQuery | None:
        """
        Build taxonomy clauses for every REST-visible taxonomy.

        Term filters match the term ids exactly; child terms are not expanded.
        Returns None when no taxonomy filter was requested.
        """
        clauses: list[TaxonomyClause] = []
        for taxonomy in rest_taxonomies(self.taxonomies):
            include_terms = params.get(taxonomy.param_name)
            if include_terms:
                clauses.append(TaxonomyClause(
                    taxonomy=taxonomy.name,
                    terms=tuple(include_terms),
                    operator="IN",
                ))
            exclude_terms = params.get(taxonomy.exclude_param_name)
            if exclude_terms:
                clauses.append(TaxonomyClause(
                    taxonomy=taxonomy.name,
                    terms=tuple(exclude_terms),
                    operator="NOT IN",
                ))

        relation = params.get("tax_relation")
        if not clauses and not relation:
            return None
        return TaxQuery(relation=relation or "AND", clauses=tuple(clauses))

    def resolve_ordering(
        self,
        orderby: str,
        order: SortDirection,
        has_search: bool = False,
    ) -> tuple[tuple[JoinSpec, ...], tuple[OrderTerm, ...]]:
        """
        Resolve orderby/order into join instructions and ORDER BY terms.

        Sorting by the author's display name joins the users store, keeps the
        requested direction, and falls back to the default primary key (date)
        and then id for equal names. Every other ordering ends with id as a
        stable tiebreak.
        """
        if orderby in DERIVED_ORDERBY:
            join = JoinSpec(table=self.users_table, local_key="author_id")
            return (join,), (
                OrderTerm("author_display_name", order),
                OrderTerm("date", order),
                OrderTerm("id", order),
            )

        if orderby == "relevance":
            if not has_search:
                return (), (OrderTerm("date", order), OrderTerm("id", order))
            return (), (
                OrderTerm("relevance", "asc"),
                OrderTerm("date", "desc"),
                OrderTerm("id", "desc"),
            )

        if orderby in POSITIONAL_ORDERBY:
            return (), (OrderTerm(orderby, "asc"), OrderTerm("id", order))

        if orderby == "id":
            return (), (OrderTerm("id", order),)

        return (), (OrderTerm(orderby, order), OrderTerm("id", order))


def build_query_spec(
    params: Mapping[str, Any],
    registered: Collection[str],
    assembler: FilterAssembler,
) -> QuerySpec:
    """Run the mapper and the assembler for one request."""
    fragment = map_request_params(params, registered)
    return assembler.assemble(fragment, params, registered)
