"""
cratehatch.ignore - Ignore Rule Evaluation
==========================================

Decides what happens to every path of a template tree. The checks run in a
fixed order and the first one that applies wins:

    1. Built-ins: ``.git``, ``.hatch.toml`` and ``.hatchignore`` are always
       skipped, at any depth
    2. Static patterns from the template's ``.hatchignore`` (full gitignore
       semantics, independent of the context)
    3. Dynamic rules from ``.hatch.toml`` in declaration order; the first
       rule whose globs match *and* whose condition renders ``true`` decides
    4. Everything else is rendered

Directories are checked with a trailing slash, so directory-only patterns
like ``target/`` work as in a ``.gitignore``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from enum import Enum
from pathlib import PurePosixPath

import pathspec

from cratehatch.context import RenderContext
from cratehatch.engine import TemplateEngine, evaluate_condition
from cratehatch.models import IgnoreMode, IgnoreRule
from cratehatch.settings import IGNORE_FILE, MARKER_FILE


logger = logging.getLogger(__name__)

ALWAYS_IGNORED = frozenset({".git", MARKER_FILE, IGNORE_FILE})


class FileAction(str, Enum):
    """
    Outcome of evaluating a path.

    Attributes
    ----------
    RENDER : str
        Render the path and its content through the template engine.

    COPY : str
        Render the path but copy the content byte for byte.

    PARTIAL : str
        Do not write the file; it is only used through includes.

    SKIP : str
        Leave the path (and for directories, the whole subtree) out.
    """

    RENDER = "render"
    COPY = "copy"
    PARTIAL = "partial"
    SKIP = "skip"


_MODE_ACTIONS = {
    IgnoreMode.ALL: FileAction.SKIP,
    IgnoreMode.TEMPLATE: FileAction.COPY,
    IgnoreMode.RENDER: FileAction.PARTIAL,
}


class IgnoreEvaluator:
    """
    Evaluates built-in, static and dynamic ignore rules for relative paths.

    Conditions are rendered at most once per rule and only when a path
    actually matches the rule's globs; the context is immutable, so the
    cached result stays valid for the whole run.

    Parameters
    ----------
    context : RenderContext
        Context the rule conditions are rendered against.

    rules : Sequence[IgnoreRule]
        Dynamic rules in declaration order.

    engine : TemplateEngine
        Engine used to render the conditions.

    static_patterns : Iterable[str]
        Lines of a ``.hatchignore`` file.

    Examples
    --------
    >>> evaluator = IgnoreEvaluator(context, config.ignore, JinjaEngine())
    >>> evaluator.decide("src/main.rs")
    <FileAction.SKIP: 'skip'>
    """

    def __init__(
        self,
        context: RenderContext,
        rules: Sequence[IgnoreRule],
        engine: TemplateEngine,
        static_patterns: Iterable[str] = (),
    ) -> None:
        self.context = context
        self.rules = tuple(rules)
        self.engine = engine
        self.static = pathspec.GitIgnoreSpec.from_lines(static_patterns)
        self._active: dict[int, bool] = {}

    def decide(self, path: str, *, is_dir: bool = False) -> FileAction:
        """
        Decide what to do with a path.

        Parameters
        ----------
        path : str
            Path relative to the template root, ``/`` separated.

        is_dir : bool
            Whether the path is a directory.

        Returns
        -------
        FileAction
            The action for the path.

        Raises
        ------
        TemplateError
            If a matching rule's condition can't be rendered or is not a
            boolean.
        """
        if ALWAYS_IGNORED.intersection(PurePosixPath(path).parts):
            return FileAction.SKIP

        candidate = f"{path}/" if is_dir else path
        if self.static.match_file(candidate):
            logger.debug("Skipping %s (%s)", path, IGNORE_FILE)
            return FileAction.SKIP

        for index, rule in enumerate(self.rules):
            if rule.matches(candidate) and self._is_active(index, rule):
                action = _MODE_ACTIONS[rule.ignore_from]
                logger.debug("Ignore rule #%d applies to %s: %s", index + 1, path, action.value)
                return action

        return FileAction.RENDER

    def _is_active(self, index: int, rule: IgnoreRule) -> bool:
        if rule.condition is None:
            return True
        if index not in self._active:
            self._active[index] = evaluate_condition(
                self.engine,
                rule.condition,
                self.context,
                name=f"condition of ignore rule #{index + 1}",
            )
        return self._active[index]
