"""
Edit composition for the namespace quick fix.

Builds the container edits (new container or extension of an existing one)
and merges them with the function body edits into one atomic Fix.
"""

import logging

from slotmorph.config.models import Diagnostic, Fix, FixKind, Namespace, Range, TextEdit
from slotmorph.namespace.catalog import print_namespace_template
from slotmorph.quickfix.errors import InvariantViolation
from slotmorph.workspace.document import TextDocument

logger = logging.getLogger(__name__)


class EditComposer:
    """Composes all edits of the quick fix against one document snapshot."""

    def __init__(self, document: TextDocument, indent: str = "    "):
        self.document = document
        self.indent = indent

    def container_edits(self, namespace: Namespace, insertion_point: Range | None) -> list[TextEdit]:
        """
        Get the edits that move the variables into the namespace container.

        Args:
            namespace: Namespace with the variables in declaration order
            insertion_point: Range of an existing container's closing brace,
                or None to generate a new container

        Returns:
            Ordered list of edits
        """
        if not namespace.variables:
            raise InvariantViolation("Cannot build a namespace container without variables")

        if insertion_point is None:
            return self._new_container_edits(namespace)
        return self._existing_container_edits(namespace, insertion_point)

    def _new_container_edits(self, namespace: Namespace) -> list[TextEdit]:
        # The first declaration becomes the container, the rest are removed
        first, *rest = namespace.variables
        edits = [TextEdit(range=first.range, new_text=print_namespace_template(namespace, self.indent))]
        edits.extend(TextEdit(range=variable.range, new_text="") for variable in rest)
        logger.debug(f"New container for {namespace.contract_name} with {len(namespace.variables)} fields")
        return edits

    def _existing_container_edits(self, namespace: Namespace, closing_brace: Range) -> list[TextEdit]:
        edits = [TextEdit(range=variable.range, new_text="") for variable in namespace.variables]

        # One edit for all fields keeps their order independent of how the
        # host merges inserts at the same point
        fields = "".join(f"{self.indent}{variable.content}\n{self.indent}" for variable in namespace.variables)
        edits.append(TextEdit(range=closing_brace, new_text=fields + "}"))
        logger.debug(
            f"Extending container of {namespace.contract_name} at line {closing_brace.start.line + 1}"
        )
        return edits

    def compose(
        self,
        title: str,
        diagnostics: list[Diagnostic],
        container_edits: list[TextEdit],
        body_edits: list[TextEdit],
    ) -> Fix:
        """Merge container and function body edits into one fix."""
        edits = [*container_edits, *body_edits]
        self.check_disjoint(edits)
        return Fix(
            title=title,
            kind=FixKind.QUICK_FIX,
            edits={self.document.uri: edits},
            diagnostics=list(diagnostics),
        )

    @staticmethod
    def check_disjoint(edits: list[TextEdit]) -> None:
        """Abort if any two edits in a batch overlap."""
        ordered = sorted(edits, key=lambda edit: (edit.range.start.as_tuple(), edit.range.end.as_tuple()))
        widest: TextEdit | None = None
        for current in ordered:
            if widest is not None and widest.range.overlaps(current.range):
                raise InvariantViolation(
                    f"Edits overlap at line {current.range.start.line + 1}: "
                    f"{widest.range} and {current.range}"
                )
            if widest is None or current.range.end.as_tuple() > widest.range.end.as_tuple():
                widest = current
