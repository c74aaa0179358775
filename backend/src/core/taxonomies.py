"""Taxonomies registered for stories."""
from dataclasses import dataclass


@dataclass(frozen=True)
class TaxonomyConfig:
    """
    A taxonomy attached to the story post type.

    `rest_base` is the public parameter/field name; taxonomies with
    show_in_rest=False are stored but never exposed or filtered on.
    """

    name: str
    rest_base: str = ""
    show_in_rest: bool = True

    @property
    def param_name(self) -> str:
        """Name of the inclusion parameter (and of the response field)."""
        return self.rest_base or self.name

    @property
    def exclude_param_name(self) -> str:
        """Name of the exclusion parameter."""
        return f"{self.param_name}_exclude"


STORY_TAXONOMIES: tuple[TaxonomyConfig, ...] = (
    TaxonomyConfig(name="web_story_category", rest_base="web_story_category"),
    TaxonomyConfig(name="web_story_tag", rest_base="web_story_tag"),
    TaxonomyConfig(name="web_story_vertical", show_in_rest=False),
)


def rest_taxonomies(
    taxonomies: tuple[TaxonomyConfig, ...] = STORY_TAXONOMIES,
) -> tuple[TaxonomyConfig, ...]:
    """Return the taxonomies visible over the REST API."""
    return tuple(t for t in taxonomies if t.show_in_rest)
