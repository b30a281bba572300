"""
QuestionGraph - immutable directed graph of interview questions.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterator, Mapping

from memory.profile import UserProfile
from nodes.base import RULES, ComputedRoute, ConstantRoute, QuestionNode, RoutingRule
from orchestrator.exceptions import GraphConfigurationError, NodeNotFound

logger = logging.getLogger(__name__)


class QuestionGraph:
    """
    Read-only question graph shared by every session.

    Exactly one node is terminal: its route is a constant self-loop, which
    makes "complete" an absorbing state. ``finish_trigger_id`` names the
    last real question; answering it ends the interview.
    """

    def __init__(
        self,
        nodes: list[QuestionNode],
        start_id: str,
        finish_trigger_id: str | None = None,
        rules: Mapping[str, RoutingRule] | None = None,
    ):
        by_id: dict[str, QuestionNode] = {}
        for node in nodes:
            if node.id in by_id:
                raise GraphConfigurationError(f"Duplicate question node '{node.id}'")
            by_id[node.id] = node
        self._nodes = MappingProxyType(by_id)
        self._rules = MappingProxyType(dict(RULES if rules is None else rules))
        self.start_id = start_id
        self.finish_trigger_id = finish_trigger_id
        self.terminal_id = self._find_terminal()

    def _find_terminal(self) -> str:
        terminals = [
            node.id
            for node in self._nodes.values()
            if isinstance(node.route, ConstantRoute) and node.route.target == node.id
        ]
        if len(terminals) != 1:
            raise GraphConfigurationError(
                f"Graph must have exactly one terminal node, found {len(terminals)}: {terminals}"
            )
        return terminals[0]

    def get_node(self, node_id: str) -> QuestionNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFound(node_id)
        return node

    def nodes(self) -> Iterator[QuestionNode]:
        return iter(self._nodes.values())

    def is_terminal(self, node_id: str) -> bool:
        return node_id == self.terminal_id

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def resolve_next(self, node: QuestionNode, answer: str, profile: UserProfile) -> str:
        """
        Apply the node's routing rule.

        Constant routes return their target. Computed routes call the
        registered rule with the raw answer and the profile; if the rule
        raises, the route's default branch is used. A result outside the
        route's declared targets means the graph data is corrupt.
        """
        route = node.route
        if isinstance(route, ConstantRoute):
            return route.target

        rule = self._rules.get(route.rule)
        if rule is None:
            raise GraphConfigurationError(f"Routing rule '{route.rule}' is not registered")
        try:
            next_id = rule(answer, profile)
        except Exception:
            logger.exception("Routing rule %s failed on node %s, using default", route.rule, node.id)
            return route.default

        if next_id not in route.targets:
            raise GraphConfigurationError(
                f"Rule '{route.rule}' on node '{node.id}' returned undeclared target '{next_id}'"
            )
        return next_id

    def validate(self, total_questions: int | None = None) -> None:
        """
        Check graph integrity. Raises GraphConfigurationError on the first problem.

        When ``total_questions`` is given, a longest answerable path that
        exceeds it is logged as a configuration warning.
        """
        if self.start_id not in self._nodes:
            raise GraphConfigurationError(f"Start node '{self.start_id}' does not exist")
        if self.finish_trigger_id is not None and self.finish_trigger_id not in self._nodes:
            raise GraphConfigurationError(
                f"Finish trigger '{self.finish_trigger_id}' does not exist"
            )

        for node in self._nodes.values():
            for target in node.route_targets():
                if target not in self._nodes:
                    raise GraphConfigurationError(
                        f"Node '{node.id}' routes to missing node '{target}'"
                    )
            if isinstance(node.route, ComputedRoute):
                if node.route.rule not in self._rules:
                    raise GraphConfigurationError(
                        f"Node '{node.id}' uses unregistered rule '{node.route.rule}'"
                    )
                if node.route.default not in node.route.targets:
                    raise GraphConfigurationError(
                        f"Node '{node.id}' default '{node.route.default}' is not among its targets"
                    )

        reachable = self.reachable_from(self.start_id)
        if self.terminal_id not in reachable:
            raise GraphConfigurationError(
                f"Terminal node '{self.terminal_id}' is not reachable from '{self.start_id}'"
            )

        if total_questions is not None:
            longest = self.max_path_length()
            if longest is None:
                logger.warning(
                    "Question graph has a cycle before the terminal node; "
                    "sessions will only end through the %d-question bound",
                    total_questions,
                )
            elif longest > total_questions:
                logger.warning(
                    "Longest interview path asks %d questions but the budget is %d; "
                    "the count bound will cut those sessions short",
                    longest,
                    total_questions,
                )

    def reachable_from(self, node_id: str) -> set[str]:
        seen: set[str] = set()
        stack = [node_id]
        while stack:
            current = stack.pop()
            if current in seen or current not in self._nodes:
                continue
            seen.add(current)
            stack.extend(self._nodes[current].route_targets())
        return seen

    def max_path_length(self) -> int | None:
        """
        Largest number of questions answered on any path from start.

        A path stops at the finish trigger (inclusive) or before the
        terminal node. Returns None when a cycle makes it unbounded.
        """
        memo: dict[str, int] = {}
        visiting: set[str] = set()

        def longest(node_id: str) -> int | None:
            if node_id == self.terminal_id:
                return 0
            if node_id in memo:
                return memo[node_id]
            if node_id in visiting:
                return None
            if node_id == self.finish_trigger_id:
                memo[node_id] = 1
                return 1
            visiting.add(node_id)
            best = 0
            for target in self._nodes[node_id].route_targets():
                length = longest(target)
                if length is None:
                    visiting.discard(node_id)
                    return None
                best = max(best, length)
            visiting.discard(node_id)
            memo[node_id] = best + 1
            return best + 1

        return longest(self.start_id)
