"""
Alter-script assembler: change-set tree → one ordered, safety-commented script.

Workflow
--------
1. Classify the tree into container/collection/column/view buckets.
2. Render each bucket with its category × action renderer.
3. Flatten in bucket precedence (containers → collections → columns → views).
4. Comment out destructive statements unless dropping is allowed.
5. Pretty-print and isolate statements.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, TypeVar

from src.ddl_bridge.formatting import Formatter, format_script, pretty_print
from src.ddl_bridge.plan import renderers
from src.ddl_bridge.plan.buckets import StatementBucket, flatten_buckets
from src.ddl_bridge.plan.classifier import Classifier, ClassifiedChanges
from src.ddl_bridge.plan.policy import DropSafetyPolicy, ScriptOptions
from src.ddl_bridge.schema.models import SchemaTree
from src.ddl_bridge.schema.payload import parse_schema_tree
from src.enums import BucketCategory
from src.logger import LOGGER

NodeT = TypeVar("NodeT")


class AlterScriptAssembler:
    """Turns classified changes into a formatted alter script."""

    def __init__(
        self,
        classifier: Classifier | None = None,
        formatter: Formatter = pretty_print,
    ) -> None:
        self.classifier: Classifier = classifier or Classifier()
        self.formatter: Formatter = formatter

    def build(self, tree: SchemaTree, options: ScriptOptions | None = None) -> str:
        """Assemble the alter script for `tree`; no changes give an empty script."""
        script_options = options or ScriptOptions()
        classified = self.classifier.classify(tree)
        buckets = self.render_buckets(classified)
        statements = flatten_buckets(buckets)
        LOGGER.debug(
            "Alter script: %d statement(s) across %d bucket(s)",
            len(statements),
            sum(1 for bucket in buckets if bucket.statements),
        )
        policy = DropSafetyPolicy(apply_drop_statements=script_options.apply_drop_statements)
        return format_script(policy.apply(statements), self.formatter)

    @staticmethod
    def render_buckets(classified: ClassifiedChanges) -> list[StatementBucket]:
        """One bucket per category × action, in precedence order."""
        containers, collections = classified.containers, classified.collections
        columns, views = classified.columns, classified.views
        return [
            _bucket(BucketCategory.CONTAINER_ADDED, containers.added, renderers.render_add_container),
            _bucket(BucketCategory.CONTAINER_DELETED, containers.deleted, renderers.render_delete_container),
            _bucket(BucketCategory.CONTAINER_MODIFIED, containers.modified, renderers.render_modify_container),
            _bucket(BucketCategory.COLLECTION_ADDED, collections.added, renderers.render_add_collection),
            _bucket(BucketCategory.COLLECTION_DELETED, collections.deleted, renderers.render_delete_collection),
            _bucket(BucketCategory.COLLECTION_MODIFIED, collections.modified, renderers.render_modify_collection),
            _bucket(BucketCategory.COLUMN_ADDED, columns.added, renderers.render_add_columns),
            _bucket(BucketCategory.COLUMN_DELETED, columns.deleted, renderers.render_delete_columns),
            _bucket(BucketCategory.COLUMN_MODIFIED, columns.modified, renderers.render_modify_columns),
            _bucket(BucketCategory.VIEW_ADDED, views.added, renderers.render_add_view),
            _bucket(BucketCategory.VIEW_DELETED, views.deleted, renderers.render_delete_view),
            _bucket(BucketCategory.VIEW_MODIFIED, views.modified, renderers.render_modify_view),
        ]


def build_alter_script(
    schema: Mapping[str, Any],
    definitions: Sequence[Mapping[str, Any]] = (),
    options: Mapping[str, Any] | ScriptOptions | None = None,
    formatter: Formatter = pretty_print,
) -> str:
    """Validate a host schema payload and assemble its alter script."""
    tree = parse_schema_tree(schema, definitions)
    script_options = options if isinstance(options, ScriptOptions) else ScriptOptions.from_payload(options)
    return AlterScriptAssembler(formatter=formatter).build(tree, script_options)


def _bucket(
    category: BucketCategory,
    nodes: Iterable[NodeT],
    render: Callable[[NodeT], list[str | None]],
) -> StatementBucket:
    return StatementBucket.of(category, (fragment for node in nodes for fragment in render(node)))
