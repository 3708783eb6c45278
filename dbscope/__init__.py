"""dbscope - inspect and edit the SQL databases of a running process."""

from typing import TYPE_CHECKING, Any

__all__ = [
    "__version__",
    "main",
    "InspectionSession",
    "InspectorState",
]

__version__ = "0.1.0"

if TYPE_CHECKING:
    from dbscope.domains.inspect.app.session import InspectionSession
    from dbscope.domains.inspect.domain.models import InspectorState

    from .cli import main


def __getattr__(name: str) -> Any:
    """Lazy import for heavy modules to keep package import side-effect free."""
    if name == "main":
        from .cli import main

        return main
    if name == "InspectionSession":
        from dbscope.domains.inspect.app.session import InspectionSession

        return InspectionSession
    if name == "InspectorState":
        from dbscope.domains.inspect.domain.models import InspectorState

        return InspectorState
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
