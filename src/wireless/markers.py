from typing import TYPE_CHECKING, Annotated, Any, TypeVar, Union, get_args, get_origin

T = TypeVar("T")
_ANNOTATED_MARKER_MIN_ARGS = 2


class OmitMarker:
    """A marker used to exclude an attribute from ``Container.inject``."""


class InjectedMarker:
    """A marker used to indicate a parameter should be injected from the container.

    Used by the pytest plugin to find test parameters that must be hidden from
    fixture lookup and resolved with ``Container.inject_as``.
    """


if TYPE_CHECKING:
    Omit = Union[T, T]  # noqa: UP007,PYI016
    """Leave an attribute untouched by ``Container.inject``.

    At runtime ``Omit[T]`` becomes ``Annotated[T, OmitMarker()]``.

    Examples:
        .. code-block:: python

            @dataclass
            class Handlers:
                repo: Repository
                cache: Omit[Cache | None] = None
    """

    Injected = Union[T, T]  # noqa: UP007,PYI016
    """Mark a test parameter for container-driven injection.

    At runtime ``Injected[T]`` becomes ``Annotated[T, InjectedMarker()]``.
    """

else:

    class Omit:
        """Leave an attribute untouched by ``Container.inject``.

        At runtime ``Omit[T]`` resolves to ``Annotated[T, OmitMarker()]``.

        Examples:
            .. code-block:: python

                @dataclass
                class Handlers:
                    repo: Repository
                    cache: Omit[Cache | None] = None

        """

        def __class_getitem__(cls, item: T) -> Annotated[T, OmitMarker]:
            return _append_marker(item, OmitMarker())

    class Injected:
        """Mark a test parameter for container-driven injection.

        At runtime ``Injected[T]`` resolves to ``Annotated[T, InjectedMarker()]``.

        Examples:
            .. code-block:: python

                def test_service(service: Injected[Service]) -> None:
                    assert service.ready

        """

        def __class_getitem__(cls, item: T) -> Annotated[T, InjectedMarker]:
            return _append_marker(item, InjectedMarker())


def is_omit_annotation(annotation: Any) -> bool:
    """Return True when annotation is Annotated[..., OmitMarker()]."""
    return _has_marker(annotation, OmitMarker)


def is_injected_annotation(annotation: Any) -> bool:
    """Return True when annotation is Annotated[..., InjectedMarker()]."""
    return _has_marker(annotation, InjectedMarker)


def strip_injected_annotation(annotation: Any) -> Any:
    """Strip the Injected marker while preserving other Annotated metadata."""
    if not is_injected_annotation(annotation):
        return annotation

    annotation_args = get_args(annotation)
    parameter_type = annotation_args[0]
    metadata = annotation_args[1:]
    filtered_metadata = tuple(item for item in metadata if not isinstance(item, InjectedMarker))
    if not filtered_metadata:
        return parameter_type
    return _build_annotated((parameter_type, *filtered_metadata))


def _has_marker(annotation: Any, marker_type: type[Any]) -> bool:
    if get_origin(annotation) is not Annotated:
        return False
    annotation_args = get_args(annotation)
    if len(annotation_args) < _ANNOTATED_MARKER_MIN_ARGS:
        return False
    return any(isinstance(item, marker_type) for item in annotation_args[1:])


def _append_marker(item: Any, marker: object) -> Any:
    if get_origin(item) is Annotated:
        args = get_args(item)
        inner = args[0]
        metadata = args[1:]
        return _build_annotated((inner, *metadata, marker))
    return _build_annotated((item, marker))


def _build_annotated(params: tuple[object, ...]) -> Any:
    """Return Annotated[...] with a pre-built params tuple (Py 3.10+ compatible)."""
    try:
        return Annotated.__class_getitem__(params)  # type: ignore[attr-defined]
    except AttributeError:
        return Annotated.__getitem__(params)  # type: ignore[attr-defined]
