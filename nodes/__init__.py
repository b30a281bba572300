"""
Car-Buying Interview - Question Graph

This package holds the immutable question graph that drives the interview:
question nodes with their display and speech metadata, routing rules that
pick the next question from an answer, and the default interview tree.

All nodes are frozen Pydantic models. Routes are either a constant target
or the name of a computed rule registered in ``nodes.base.RULES``, so node
data stays serializable and the graph can be validated without running it.
"""

# Base classes
from nodes.base import (
    ComputedRoute,
    ConstantRoute,
    LoadingTransition,
    QuestionNode,
    SpeechSpec,
    routing_rule,
)

# Graph container and validation
from nodes.graph import QuestionGraph

# Default interview tree
from nodes.question_tree import LOADING_MESSAGES, build_question_graph

__all__ = [
    # Base classes
    "QuestionNode",
    "SpeechSpec",
    "LoadingTransition",
    "ConstantRoute",
    "ComputedRoute",
    "routing_rule",
    # Graph
    "QuestionGraph",
    # Interview tree
    "LOADING_MESSAGES",
    "build_question_graph",
]
