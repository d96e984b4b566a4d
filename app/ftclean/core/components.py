"""Component classification.

Roles are derived from naming conventions: the review encodes generated by
the server have fixed names, everything else is classified by extension.
"""

from collections.abc import Iterable, Sequence
from typing import Literal

from ftclean.models.deletion import ComponentDeletionChoice
from ftclean.models.entity import Component, ComponentRole

Preference = Literal["original", "encoded"]

ENCODED_HIGH_NAME = "ftrackreview-mp4-1080"
ENCODED_LOW_NAME = "ftrackreview-mp4"
REVIEW_MARKER = "ftrackreview"

IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    {"jpg", "jpeg", "png", "gif", "bmp", "tif", "tiff", "webp"}
)
VIDEO_EXTENSIONS: frozenset[str] = frozenset(
    {"mov", "mp4", "avi", "mkv", "mxf", "r3d", "dpx", "exr"}
)

FALLBACK_CHAINS: dict[str, tuple[ComponentRole, ...]] = {
    "original": (
        ComponentRole.ORIGINAL,
        ComponentRole.ENCODED_HIGH,
        ComponentRole.ENCODED_LOW,
        ComponentRole.IMAGE,
    ),
    "encoded": (
        ComponentRole.ENCODED_HIGH,
        ComponentRole.ENCODED_LOW,
        ComponentRole.IMAGE,
        ComponentRole.ORIGINAL,
    ),
}


def _has_extension(component: Component, extensions: frozenset[str]) -> bool:
    """Check the file type, then the name, against a set of extensions."""
    file_type = component.file_type.lower().lstrip(".")
    if file_type in extensions:
        return True
    name = component.name.lower()
    return any(f".{ext}" in name for ext in extensions)


def identify_role(component: Component) -> ComponentRole:
    """Classify a component.

    Args:
        component: Component to classify.

    Returns:
        The component's role; OTHER when no rule applies.
    """
    name = component.name.lower()
    if name == ENCODED_HIGH_NAME:
        return ComponentRole.ENCODED_HIGH
    if name == ENCODED_LOW_NAME:
        return ComponentRole.ENCODED_LOW
    if _has_extension(component, IMAGE_EXTENSIONS):
        return ComponentRole.IMAGE
    if _has_extension(component, VIDEO_EXTENSIONS) and REVIEW_MARKER not in name:
        return ComponentRole.ORIGINAL
    return ComponentRole.OTHER


def find_best(components: Sequence[Component], preference: Preference) -> Component | None:
    """Pick the most suitable component for a preference.

    Roles are tried in fallback order; within the first role that has any
    component, the largest one wins (first seen on ties).

    Args:
        components: Components of one entity.
        preference: "original" or "encoded".

    Returns:
        The chosen component, or None if no component has a role in the
        fallback chain.
    """
    groups: dict[ComponentRole, list[Component]] = {}
    for component in components:
        groups.setdefault(identify_role(component), []).append(component)

    for role in FALLBACK_CHAINS[preference]:
        group = groups.get(role)
        if group:
            return max(group, key=lambda c: c.size)
    return None


def select_for_deletion(
    components: Iterable[Component],
    choice: ComponentDeletionChoice,
    thumbnail_id: str | None = None,
) -> list[Component]:
    """Compute which components of an entity may be deleted.

    The thumbnail component is removed before the choice is applied, so
    it is never a target.

    Args:
        components: Components of one entity.
        choice: Which components to delete.
        thumbnail_id: Id of the entity's thumbnail component, if any.

    Returns:
        Components to delete, in input order.
    """
    deletable = [c for c in components if not (thumbnail_id and c.id == thumbnail_id)]

    if choice == ComponentDeletionChoice.ORIGINAL_ONLY:
        return [c for c in deletable if identify_role(c) == ComponentRole.ORIGINAL]
    if choice == ComponentDeletionChoice.ENCODED_ONLY:
        return [c for c in deletable if identify_role(c).is_encoded]
    return deletable
