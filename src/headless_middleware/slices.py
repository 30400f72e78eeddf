"""Slice zone model and renderer dispatch.

A slice zone is an ordered sequence of typed content blocks. The middleware
does not render slices itself; it only maps each slice to the component
registered for its type, keeping the original order.

Examples:
    Rendering a page body::

        slices = parse_slice_zone(document["data"]["body"])
        html = render_slice_zone(
            slices,
            components={
                "hero": render_hero,
                "text": render_text,
            },
            context={"lang": document["lang"]},
        )
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from headless_middleware.exceptions import UnknownSliceError

SliceComponent = Callable[..., Any]


class Slice(BaseModel):
    """One content block of a slice zone.

    Attributes:
        slice_type: Type name used to pick the component. Accepts either
            ``slice_type`` or ``type`` in input data.
        primary: Non-repeatable fields of the slice.
        items: Repeatable field groups, in order.
        index: Position of the slice in its zone.
    """

    slice_type: str = Field(..., validation_alias=AliasChoices("slice_type", "type"))
    primary: dict[str, Any] = Field(default_factory=dict)
    items: list[dict[str, Any]] = Field(default_factory=list)
    index: int = Field(default=0, ge=0)

    model_config = {"frozen": True, "populate_by_name": True}


def parse_slice_zone(raw: Iterable[Mapping[str, Any]] | None) -> list[Slice]:
    """Build indexed Slice objects from API data.

    Null ``primary``/``items`` values from the API are treated as empty.

    Example:
        >>> [s.slice_type for s in parse_slice_zone([{"slice_type": "hero"}])]
        ['hero']
    """
    slices = []
    for index, data in enumerate(raw or []):
        slices.append(
            Slice.model_validate(
                {
                    **data,
                    "primary": data.get("primary") or {},
                    "items": data.get("items") or [],
                    "index": index,
                }
            )
        )
    return slices


def render_slice_zone(
    slices: Iterable[Slice],
    components: Mapping[str, SliceComponent],
    context: Any = None,
) -> list[Any]:
    """Render each slice with the component registered for its type.

    Components are called as ``component(slice, slices=..., context=...)``.

    Returns:
        One rendered unit per slice, in original order.

    Raises:
        UnknownSliceError: If a slice type has no component.
    """
    zone = list(slices)
    rendered = []
    for item in zone:
        component = components.get(item.slice_type)
        if component is None:
            raise UnknownSliceError(item.slice_type)
        rendered.append(component(item, slices=zone, context=context))
    return rendered
