"""
Hierarchy Builder - folds recognized elements into the builder-neutral IR.

The output tree uses five node kinds: section, container, row, column and
widget. Structural elements become layout nodes, every other element becomes
a widget that carries its whole subtree as markup. Rows and columns are
inferred from column signals on sibling elements.
"""
import logging
from typing import Dict, List, Optional

from pagebuilder.models import (
    AnalyzedElement,
    ComponentHierarchy,
    ComponentType,
    LayoutType,
    RecognitionResult,
    STRUCTURAL_TYPES,
)
from pagebuilder.recognizer import extract_props
from .columns import column_signals, grid_tracks, partition_rows, resolve_sizes

logger = logging.getLogger(__name__)

AMBIGUOUS_LAYOUT = "Could not infer column layout"


class HierarchyBuilder:
    """Builds one ComponentHierarchy per call; ids restart at node_0 every time."""

    def __init__(self):
        self._counter = 0

    def build(self, root: AnalyzedElement, results: Dict[str, RecognitionResult]) -> ComponentHierarchy:
        self._counter = 0
        result = results[root.path]

        if self._is_layout(root, result):
            hierarchy = self._layout_node(root, results, depth=0)
        else:
            page_id = self._next_id()
            hierarchy = ComponentHierarchy(
                id=page_id,
                type=LayoutType.CONTAINER,
                componentType=ComponentType.CONTAINER,
                reason="Synthesized page container",
                children=[self._node(root, results, depth=1)],
            )

        nodes = list(hierarchy.walk())
        flagged = sum(1 for node in nodes if node.manualReviewNeeded)
        logger.info(f"Built hierarchy with {len(nodes)} nodes ({flagged} flagged for review)")
        return hierarchy

    def _next_id(self) -> str:
        node_id = f"node_{self._counter}"
        self._counter += 1
        return node_id

    def _is_layout(self, element: AnalyzedElement, result: RecognitionResult) -> bool:
        if result.componentType not in STRUCTURAL_TYPES:
            return False
        # A structural tag holding only text reads as a text widget
        return bool(element.children) or not element.textContent

    def _node(self, element: AnalyzedElement, results: Dict[str, RecognitionResult], depth: int) -> ComponentHierarchy:
        if self._is_layout(element, results[element.path]):
            return self._layout_node(element, results, depth)
        return self._widget(element, results[element.path])

    def _widget(self, element: AnalyzedElement, result: RecognitionResult) -> ComponentHierarchy:
        component_type = result.componentType
        reason = result.reason
        if component_type in STRUCTURAL_TYPES:
            component_type = ComponentType.TEXT
            reason = f"{result.reason}; text-only {result.componentType.value} emitted as text"

        return ComponentHierarchy(
            id=self._next_id(),
            type=LayoutType.WIDGET,
            componentType=component_type,
            confidence=result.confidence,
            manualReviewNeeded=result.manualReviewNeeded,
            reason=reason,
            elementPath=element.path,
            props=extract_props(element, component_type),
            styles=element.styles,
            responsiveStyles=element.responsiveStyles,
        )

    def _layout_node(
        self,
        element: AnalyzedElement,
        results: Dict[str, RecognitionResult],
        depth: int,
        column_size: Optional[float] = None,
    ) -> ComponentHierarchy:
        """
        Layout node for a structural element. With `column_size` the element
        is itself a column of its parent's row, so any row inferred from its
        own children nests inside it instead of replacing it.
        """
        result = results[element.path]
        node_id = self._next_id()
        if column_size is not None:
            layout_type = LayoutType.COLUMN
        else:
            layout_type = LayoutType.SECTION if depth == 1 else LayoutType.CONTAINER
        manual_review = result.manualReviewNeeded
        reason = result.reason

        signals = column_signals(element)
        if element.children and all(signal is not None for signal in signals):
            sizes = resolve_sizes(signals)
            rows = partition_rows(sizes, len(grid_tracks(element)))
            if len(rows) == 1 and depth > 0 and column_size is None:
                layout_type = LayoutType.ROW
                children = self._columns(element, rows[0], sizes, results, depth)
            else:
                children = [self._row(element, indexes, sizes, results, depth + 1) for indexes in rows]
        elif result.componentType in (ComponentType.ROW, ComponentType.GRID) and element.children:
            manual_review = True
            reason = AMBIGUOUS_LAYOUT
            logger.debug(f"{element.path}: {AMBIGUOUS_LAYOUT}, using one full-width column")
            if column_size is None and depth > 0:
                layout_type = LayoutType.ROW
                children = [self._full_width_column(element, results, depth + 1)]
            else:
                row_id = self._next_id()
                children = [ComponentHierarchy(
                    id=row_id,
                    type=LayoutType.ROW,
                    componentType=ComponentType.ROW,
                    manualReviewNeeded=True,
                    reason=AMBIGUOUS_LAYOUT,
                    children=[self._full_width_column(element, results, depth + 2)],
                )]
        else:
            children = [self._node(child, results, depth + 1) for child in element.children]

        return ComponentHierarchy(
            id=node_id,
            type=layout_type,
            componentType=result.componentType,
            confidence=result.confidence,
            manualReviewNeeded=manual_review,
            reason=reason,
            elementPath=element.path,
            size=column_size,
            props=extract_props(element, result.componentType),
            styles=element.styles,
            responsiveStyles=element.responsiveStyles,
            children=children,
        )

    def _full_width_column(
        self, element: AnalyzedElement, results: Dict[str, RecognitionResult], depth: int
    ) -> ComponentHierarchy:
        column_id = self._next_id()
        return ComponentHierarchy(
            id=column_id,
            type=LayoutType.COLUMN,
            componentType=ComponentType.COLUMN,
            size=100,
            reason="Single full-width column",
            children=[self._node(child, results, depth + 1) for child in element.children],
        )

    def _row(
        self,
        element: AnalyzedElement,
        indexes: List[int],
        sizes: List[float],
        results: Dict[str, RecognitionResult],
        depth: int,
    ) -> ComponentHierarchy:
        row_id = self._next_id()
        return ComponentHierarchy(
            id=row_id,
            type=LayoutType.ROW,
            componentType=ComponentType.ROW,
            reason="Synthesized row",
            children=self._columns(element, indexes, sizes, results, depth),
        )

    def _columns(
        self,
        element: AnalyzedElement,
        indexes: List[int],
        sizes: List[float],
        results: Dict[str, RecognitionResult],
        depth: int,
    ) -> List[ComponentHierarchy]:
        columns = []
        for index in indexes:
            child = element.children[index]
            result = results[child.path]
            if self._is_layout(child, result):
                columns.append(self._layout_node(child, results, depth + 1, column_size=sizes[index]))
                continue

            column_id = self._next_id()
            columns.append(ComponentHierarchy(
                id=column_id,
                type=LayoutType.COLUMN,
                componentType=ComponentType.COLUMN,
                size=sizes[index],
                reason="Synthesized column",
                children=[self._widget(child, result)],
            ))
        return columns


def build_hierarchy(root: AnalyzedElement, results: Dict[str, RecognitionResult]) -> ComponentHierarchy:
    # A fresh builder per call keeps concurrent conversions from sharing the id counter
    return HierarchyBuilder().build(root, results)
